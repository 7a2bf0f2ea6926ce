from dataclasses import dataclass


@dataclass(slots=True)
class Hole:
    """Tag component for a permanently unplayable cell."""
    pass
