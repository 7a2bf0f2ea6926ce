from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Set, Tuple

from esper import World

from blitz.components.coord import Coord
from blitz.systems.board_ops import get_board, matchable_type_map


class MatchDirection(Enum):
    HORIZONTAL = "h"
    VERTICAL = "v"
    SQUARE = "square"


@dataclass(frozen=True, slots=True)
class MatchGroup:
    """One maximal run or one 2x2 square of equal candy, cells in scan order."""

    cells: Tuple[Coord, ...]
    direction: MatchDirection
    type_id: int

    @property
    def length(self) -> int:
        return len(self.cells)

    @property
    def midpoint(self) -> Coord:
        return self.cells[len(self.cells) // 2]


def scan_match_groups(types: Dict[Coord, int], rows: int, cols: int) -> List[MatchGroup]:
    """Detect runs of >= 3 and 2x2 squares on a type map.

    Missing keys (holes, empty cells, colourless rainbows) break runs. Horizontal
    runs come first (row-major), then vertical (column-major), then squares. A cell
    may appear in several groups; squares are reported in addition to any run
    that overlaps them.
    """
    groups: List[MatchGroup] = []
    # Horizontal runs
    for r in range(rows):
        c = 0
        while c < cols:
            tval = types.get(Coord(r, c))
            if tval is None:
                c += 1
                continue
            end = c
            while end + 1 < cols and types.get(Coord(r, end + 1)) == tval:
                end += 1
            if end - c + 1 >= 3:
                cells = tuple(Coord(r, i) for i in range(c, end + 1))
                groups.append(MatchGroup(cells, MatchDirection.HORIZONTAL, tval))
            c = end + 1
    # Vertical runs
    for c in range(cols):
        r = 0
        while r < rows:
            tval = types.get(Coord(r, c))
            if tval is None:
                r += 1
                continue
            end = r
            while end + 1 < rows and types.get(Coord(end + 1, c)) == tval:
                end += 1
            if end - r + 1 >= 3:
                cells = tuple(Coord(i, c) for i in range(r, end + 1))
                groups.append(MatchGroup(cells, MatchDirection.VERTICAL, tval))
            r = end + 1
    # 2x2 squares
    for r in range(rows - 1):
        for c in range(cols - 1):
            tval = types.get(Coord(r, c))
            if tval is None:
                continue
            block = (Coord(r, c), Coord(r, c + 1), Coord(r + 1, c), Coord(r + 1, c + 1))
            if all(types.get(cell) == tval for cell in block[1:]):
                groups.append(MatchGroup(block, MatchDirection.SQUARE, tval))
    return groups


def cells_of(groups: List[MatchGroup]) -> Set[Coord]:
    return {cell for group in groups for cell in group.cells}


def find_match_groups(world: World) -> List[MatchGroup]:
    board = get_board(world)
    return scan_match_groups(matchable_type_map(world), board.rows, board.cols)


def find_matched_cells(world: World) -> Set[Coord]:
    """Union of every cell taking part in a run or a square."""
    return cells_of(find_match_groups(world))
