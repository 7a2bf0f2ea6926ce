"""Facade over the board world and its systems.

A presentation layer drives the engine either through these methods or by
emitting input events (``tile_click``, ``shuffle_request``) on ``event_bus``.
"""
from __future__ import annotations

import logging
import random
from typing import Iterable, Optional, Tuple

from blitz.components.board import Board
from blitz.components.coord import Coord
from blitz.constants import GRID_COLS, GRID_ROWS, MAX_TILE_TYPES
from blitz.events.bus import EventBus, EVENT_LEVEL_STARTED
from blitz.events.recorder import TurnOutcome
from blitz.factories.levels import LevelSpec, get_level_spec, star_count
from blitz.systems.board import BoardSystem
from blitz.systems.board_ops import board_snapshot
from blitz.systems.match_resolution import MatchResolutionSystem
from blitz.systems.move_finder import MoveFinder
from blitz.systems.shuffle import ShuffleSystem
from blitz.systems.turn_state_utils import (
    get_or_create_level_progress,
    get_or_create_score,
    get_or_create_turn_state,
)
from blitz.world import create_world

logger = logging.getLogger(__name__)


class PuzzleEngine:
    def __init__(
        self,
        rows: int = GRID_ROWS,
        cols: int = GRID_COLS,
        *,
        type_count: int = MAX_TILE_TYPES,
        mask: Iterable = (),
        seed: int | None = None,
        event_bus: EventBus | None = None,
    ):
        self.event_bus = event_bus or EventBus()
        self.world = create_world(rng=random.Random(seed))

        # Board systems
        self.board_system = BoardSystem(
            self.world, self.event_bus, rows=rows, cols=cols, type_count=type_count, mask=mask, seed=seed,
        )
        self.shuffle_system = ShuffleSystem(self.world, self.event_bus)
        self.match_resolution_system = MatchResolutionSystem(
            self.world, self.event_bus, shuffle_system=self.shuffle_system,
        )
        self.move_finder = MoveFinder(self.world)

    # ------------------------------------------------------------------ intents
    def init_board(self, type_count: int, mask: Iterable | None = None, seed: int | None = None) -> Board:
        self._reset_attempt()
        return self.board_system.init_board(type_count, mask, seed)

    def attempt_swap(self, a, b) -> TurnOutcome:
        return self.match_resolution_system.attempt_swap(a, b)

    def activate_tile(self, coord) -> TurnOutcome:
        return self.match_resolution_system.activate_tile(coord)

    def request_shuffle(self) -> Optional[TurnOutcome]:
        return self.match_resolution_system.request_shuffle()

    def get_hint(self) -> Optional[Tuple[Coord, Coord]]:
        move = self.move_finder.find_best_move()
        if move is None:
            return None
        return move.a, move.b

    def start_level(self, key: str | int, seed: int | None = None) -> LevelSpec:
        """Begin a fresh attempt at a catalogue level, addressed by slug or index."""
        spec = get_level_spec(key)
        if spec is None:
            raise KeyError(f"Unknown level {key!r}")
        self.init_board(spec.type_count, spec.mask, seed)
        progress = get_or_create_level_progress(self.world)
        progress.slug = spec.slug
        progress.goal = spec.goal
        logger.debug("Starting level %s (goal %d)", spec.slug, spec.goal)
        self.event_bus.emit(EVENT_LEVEL_STARTED, slug=spec.slug, goal=spec.goal)
        return spec

    # ------------------------------------------------------------------- queries
    @property
    def board(self) -> Board:
        return self.world.component_for_entity(self.board_system.board_entity, Board)

    @property
    def score(self) -> int:
        return get_or_create_score(self.world).total

    @property
    def stars(self) -> int:
        return star_count(self.score)

    def snapshot(self):
        return board_snapshot(self.world)

    def _reset_attempt(self) -> None:
        get_or_create_score(self.world).total = 0
        state = get_or_create_turn_state(self.world)
        state.cascade_depth = 0
        state.shuffle_used = False
        progress = get_or_create_level_progress(self.world)
        progress.slug = None
        progress.goal = 0
        progress.goal_reached = False
