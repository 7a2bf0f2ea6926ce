import logging
import random
from typing import Iterable, List, Optional

from esper import World

from blitz.components.active_switch import ActiveSwitch
from blitz.components.board import Board
from blitz.components.board_position import BoardPosition
from blitz.components.coord import Coord
from blitz.components.hole import Hole
from blitz.components.tile import TileType
from blitz.constants import (
    GRID_COLS,
    GRID_ROWS,
    INIT_MAX_ATTEMPTS,
    INIT_RELAXED_ATTEMPTS,
    MAX_TILE_TYPES,
    MIN_TILE_TYPES,
)
from blitz.errors import InitializationFailure
from blitz.events.bus import (
    EventBus,
    EVENT_BOARD_READY,
    EVENT_TILE_ACTIVATE_REQUEST,
    EVENT_TILE_CLICK,
    EVENT_TILE_DESELECTED,
    EVENT_TILE_SELECTED,
    EVENT_TILE_SWAP_REQUEST,
)
from blitz.systems.board_ops import apply_layout, get_board, get_special, world_rng
from blitz.systems.match import find_match_groups
from blitz.systems.move_finder import MoveFinder
from blitz.systems.turn_state_utils import get_or_create_turn_state

logger = logging.getLogger(__name__)


def _constructive_layout(board: Board, rng: random.Random) -> Optional[List[List[Optional[int]]]]:
    """Fill row by row, excluding any type that would complete a triple or a square."""
    layout: List[List[Optional[int]]] = []
    for row in range(board.rows):
        row_values: List[Optional[int]] = []
        for col in range(board.cols):
            if Coord(row, col) in board.mask:
                row_values.append(None)
                continue
            available = list(range(board.type_count))
            if col >= 2:
                left1 = row_values[col - 1]
                left2 = row_values[col - 2]
                if left1 is not None and left1 == left2 and left1 in available:
                    available.remove(left1)
            if row >= 2:
                up1 = layout[row - 1][col]
                up2 = layout[row - 2][col]
                if up1 is not None and up1 == up2 and up1 in available:
                    available.remove(up1)
            if row >= 1 and col >= 1:
                left = row_values[col - 1]
                up = layout[row - 1][col]
                diag = layout[row - 1][col - 1]
                if left is not None and left == up == diag and left in available:
                    available.remove(left)
            if not available:
                return None
            row_values.append(rng.choice(available))
        layout.append(row_values)
    return layout


def respawn_full_board(world: World) -> None:
    """Fill every playable cell with fresh candy: no matches and at least one legal move.

    When the strict layout cannot be found within the budget the no-match rule is
    dropped and only a legal move is required. Raises InitializationFailure when
    even that fails, which only happens for masks without adjacent playable pairs.
    """
    board = get_board(world)
    rng = world_rng(world)
    finder = MoveFinder(world)

    for _ in range(INIT_MAX_ATTEMPTS):
        layout = _constructive_layout(board, rng)
        if layout is None:
            continue
        apply_layout(world, layout)
        if find_match_groups(world):
            continue
        if not finder.has_legal_move():
            continue
        return

    logger.warning(
        "No match-free %dx%d board with %d types after %d attempts; allowing initial matches",
        board.rows, board.cols, board.type_count, INIT_MAX_ATTEMPTS,
    )
    for _ in range(INIT_RELAXED_ATTEMPTS):
        layout = [
            [None if Coord(r, c) in board.mask else rng.randrange(board.type_count) for c in range(board.cols)]
            for r in range(board.rows)
        ]
        apply_layout(world, layout)
        if finder.has_legal_move():
            return
    raise InitializationFailure("Unable to build a board with at least one legal move")


class BoardSystem:
    """Owns the board entity and its cell entities, and turns taps into intents."""

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        rows: int = GRID_ROWS,
        cols: int = GRID_COLS,
        *,
        type_count: int = MAX_TILE_TYPES,
        mask: Iterable = (),
        seed: int | None = None,
    ):
        self.world = world
        self.event_bus = event_bus
        self.rows = rows
        self.cols = cols
        self.board_entity = self.world.create_entity()
        self.world.add_component(self.board_entity, Board(rows=rows, cols=cols, type_count=type_count))
        self.selected: Optional[Coord] = None
        self.event_bus.subscribe(EVENT_TILE_CLICK, self.on_tile_click)
        self.init_board(type_count, mask, seed)

    def init_board(self, type_count: int, mask: Iterable | None = None, seed: int | None = None) -> Board:
        """Rebuild the grid for a new level attempt and fill it with a playable layout."""
        if not MIN_TILE_TYPES <= type_count <= MAX_TILE_TYPES:
            raise ValueError(f"type_count must be within [{MIN_TILE_TYPES}, {MAX_TILE_TYPES}], got {type_count}")
        holes = frozenset(Coord(*coord) for coord in (mask or ()))
        for coord in holes:
            if not (0 <= coord.row < self.rows and 0 <= coord.col < self.cols):
                raise ValueError(f"Mask cell {tuple(coord)} lies outside the board")
        if seed is not None:
            world_rng(self.world).seed(seed)

        board: Board = self.world.component_for_entity(self.board_entity, Board)
        board.type_count = type_count
        if holes != board.mask or not board.cells:
            self._rebuild_cells(board, holes)
        self.selected = None
        respawn_full_board(self.world)
        self.event_bus.emit(EVENT_BOARD_READY, rows=board.rows, cols=board.cols, type_count=type_count)
        return board

    def _rebuild_cells(self, board: Board, holes: frozenset) -> None:
        for entity in board.cells.values():
            self.world.delete_entity(entity, immediate=True)
        board.cells = {}
        board.mask = holes
        for r in range(board.rows):
            for c in range(board.cols):
                coord = Coord(r, c)
                if coord in holes:
                    ent = self.world.create_entity(BoardPosition(row=r, col=c), Hole())
                else:
                    ent = self.world.create_entity(
                        BoardPosition(row=r, col=c), TileType(), ActiveSwitch(active=False)
                    )
                board.cells[coord] = ent

    def on_tile_click(self, sender, **kwargs):
        row = kwargs.get('row')
        col = kwargs.get('col')
        if row is None or col is None:
            return
        board = get_board(self.world)
        coord = Coord(row, col)
        if not board.in_bounds(coord) or coord in board.mask:
            return
        if get_or_create_turn_state(self.world).busy:
            return
        if self.selected is None:
            self.selected = coord
            self.event_bus.emit(EVENT_TILE_SELECTED, row=row, col=col)
        elif self.selected == coord:
            # Second tap on the same tile deselects it; on a special it also fires it.
            self.selected = None
            self.event_bus.emit(EVENT_TILE_DESELECTED, reason='tap', prev_row=row, prev_col=col)
            if get_special(self.world, coord) is not None:
                self.event_bus.emit(EVENT_TILE_ACTIVATE_REQUEST, row=row, col=col)
        elif self.selected.is_adjacent(coord):
            src = self.selected
            self.selected = None
            self.event_bus.emit(EVENT_TILE_SWAP_REQUEST, src=src, dst=coord)
        else:
            prev = self.selected
            self.selected = coord
            self.event_bus.emit(EVENT_TILE_DESELECTED, reason='reselect', prev_row=prev.row, prev_col=prev.col)
            self.event_bus.emit(EVENT_TILE_SELECTED, row=row, col=col)
