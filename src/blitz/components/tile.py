from dataclasses import dataclass
from typing import Optional

# Sentinel returned by board_ops.get_cell for masked cells. Empty cells read as None.
HOLE = -1

CellValue = Optional[int]


@dataclass(slots=True)
class TileType:
    """Candy type held by a playable cell.

    type_id indexes the level palette ``[0, Board.type_count)``. Occupancy lives in
    ActiveSwitch, so an inactive cell keeps a stale type_id that must be ignored.
    """
    type_id: int = 0
