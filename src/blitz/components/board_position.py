from dataclasses import dataclass


@dataclass(slots=True)
class BoardPosition:
    """Grid coordinate of a cell entity."""

    row: int
    col: int
