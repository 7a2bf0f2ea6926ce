from __future__ import annotations

import logging
from typing import List

from esper import World

from blitz.components.coord import Coord
from blitz.constants import SHUFFLE_MAX_ATTEMPTS, SHUFFLE_REROLL_LIMIT
from blitz.events.bus import EventBus, EVENT_BOARD_SHUFFLED
from blitz.systems.board import respawn_full_board
from blitz.systems.board_ops import (
    get_board,
    get_cell,
    playable_positions,
    set_cell,
    set_special,
    world_rng,
)
from blitz.systems.match import find_matched_cells
from blitz.systems.move_finder import MoveFinder

logger = logging.getLogger(__name__)


class ShuffleSystem:
    """Recovers a deadlocked board by permuting the candies already on it."""

    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.move_finder = MoveFinder(world)

    def shuffle(self, *, reason: str = "stalemate", emit=None) -> List[Coord]:
        """Shuffle until a legal move exists; falls back to a full respawn.

        Specials are discarded. ``emit`` lets a turn recorder capture the event.
        """
        emit = emit or self.event_bus.emit
        positions = playable_positions(self.world)
        board = get_board(self.world)
        rng = world_rng(self.world)
        for position in positions:
            set_special(self.world, position, None)
        values = [get_cell(self.world, position) for position in positions]
        values = [value if value is not None else rng.randrange(board.type_count) for value in values]

        for attempt in range(1, SHUFFLE_MAX_ATTEMPTS + 1):
            rng.shuffle(values)
            for position, value in zip(positions, values):
                set_cell(self.world, position, value)
            settled = self._reroll_matches()
            if settled and self.move_finder.has_legal_move():
                logger.debug("Shuffle found a playable board after %d attempt(s)", attempt)
                emit(EVENT_BOARD_SHUFFLED, positions=positions, reinitialized=False, reason=reason)
                return positions
            values = [get_cell(self.world, position) for position in positions]

        logger.warning("Shuffle gave up after %d attempts; respawning the board", SHUFFLE_MAX_ATTEMPTS)
        respawn_full_board(self.world)
        emit(EVENT_BOARD_SHUFFLED, positions=positions, reinitialized=True, reason=reason)
        return positions

    def _reroll_matches(self) -> bool:
        """Re-randomise cells caught in accidental matches; False if matches persist."""
        board = get_board(self.world)
        rng = world_rng(self.world)
        for _ in range(SHUFFLE_REROLL_LIMIT):
            matched = find_matched_cells(self.world)
            if not matched:
                return True
            for position in sorted(matched):
                set_cell(self.world, position, rng.randrange(board.type_count))
        return not find_matched_cells(self.world)
