from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class TurnState:
    """Tracks current turn-level state shared across systems."""

    action_source: Optional[str] = None
    busy: bool = False
    cascade_active: bool = False
    cascade_depth: int = 0
    shuffle_used: bool = False
