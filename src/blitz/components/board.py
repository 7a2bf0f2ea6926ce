from dataclasses import dataclass, field
from typing import Dict, FrozenSet

from blitz.components.coord import Coord


@dataclass(slots=True)
class Board:
    rows: int
    cols: int
    type_count: int
    mask: FrozenSet[Coord] = frozenset()
    # Coord -> cell entity, filled by BoardSystem when the grid is created.
    cells: Dict[Coord, int] = field(default_factory=dict)

    def in_bounds(self, coord) -> bool:
        return 0 <= coord[0] < self.rows and 0 <= coord[1] < self.cols
