from dataclasses import dataclass


@dataclass(slots=True)
class Score:
    """Running score for the current level attempt."""
    total: int = 0
