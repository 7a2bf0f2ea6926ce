from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from esper import World

from blitz.components.coord import Coord
from blitz.constants import (
    HINT_RAINBOW_BONUS,
    HINT_ROCKET_BONUS,
    HINT_SPECIAL_ENDPOINT_BONUS,
    HINT_SQUARE_BONUS,
)
from blitz.errors import NoLegalMove
from blitz.systems.board_ops import get_board, matchable_type_map, special_map
from blitz.systems.match import MatchDirection, MatchGroup, cells_of, scan_match_groups


@dataclass(frozen=True, slots=True)
class Move:
    a: Coord
    b: Coord
    score: int


def _group_bonus(group: MatchGroup) -> int:
    if group.direction is MatchDirection.SQUARE:
        return HINT_SQUARE_BONUS
    if group.length >= 5:
        return HINT_RAINBOW_BONUS
    if group.length == 4:
        return HINT_ROCKET_BONUS
    return 0


class MoveFinder:
    """Searches every adjacent swap for the one that scores best.

    Works on a detached snapshot of the board, so hints never touch live state.
    """

    def __init__(self, world: World):
        self.world = world

    def candidate_swaps(self) -> List[tuple[Coord, Coord]]:
        board = get_board(self.world)
        pairs: List[tuple[Coord, Coord]] = []
        for row in range(board.rows):
            for col in range(board.cols):
                here = Coord(row, col)
                if here in board.mask:
                    continue
                right = Coord(row, col + 1)
                if col + 1 < board.cols and right not in board.mask:
                    pairs.append((here, right))
                down = Coord(row + 1, col)
                if row + 1 < board.rows and down not in board.mask:
                    pairs.append((here, down))
        return pairs

    def evaluate(self, a: Coord, b: Coord, *, types: Dict[Coord, int] | None = None,
                 specials: Dict | None = None) -> int:
        """Score the swap a<->b; 0 means it makes no match."""
        board = get_board(self.world)
        types = dict(types) if types is not None else matchable_type_map(self.world)
        specials = specials if specials is not None else special_map(self.world)
        type_a, type_b = types.pop(a, None), types.pop(b, None)
        if type_a is not None:
            types[b] = type_a
        if type_b is not None:
            types[a] = type_b
        groups = scan_match_groups(types, board.rows, board.cols)
        if not groups:
            return 0
        score = len(cells_of(groups))
        score += sum(_group_bonus(group) for group in groups)
        for endpoint in (a, b):
            if endpoint in specials:
                score += HINT_SPECIAL_ENDPOINT_BONUS
        return score

    def find_best_move(self) -> Optional[Move]:
        types = matchable_type_map(self.world)
        specials = special_map(self.world)
        best: Optional[Move] = None
        for a, b in self.candidate_swaps():
            score = self.evaluate(a, b, types=types, specials=specials)
            if score > (best.score if best else 0):
                best = Move(a, b, score)
        return best

    def has_legal_move(self) -> bool:
        return self.find_best_move() is not None

    def require_best_move(self) -> Move:
        move = self.find_best_move()
        if move is None:
            raise NoLegalMove("No adjacent swap produces a match")
        return move
