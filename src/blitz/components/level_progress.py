from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class LevelProgress:
    """Active level slug and whether its goal has been announced."""

    slug: Optional[str] = None
    goal: int = 0
    goal_reached: bool = False
