from typing import NamedTuple


class Coord(NamedTuple):
    """Value-type grid coordinate; compares and hashes like ``(row, col)``."""

    row: int
    col: int

    def is_adjacent(self, other) -> bool:
        return abs(self.row - other[0]) + abs(self.col - other[1]) == 1
