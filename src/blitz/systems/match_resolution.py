from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from esper import World

from blitz.components.coord import Coord
from blitz.components.special import SpecialKind
from blitz.constants import POINTS_PER_COMBO_CELL, POINTS_PER_RAINBOW_SWAP_CELL, POINTS_PER_TAP_CELL
from blitz.errors import EngineBusy, InvalidActivation, InvalidSwap, NoLegalMove
from blitz.events.bus import (
    EventBus,
    EVENT_BOARD_STALEMATE,
    EVENT_CASCADE_COMPLETE,
    EVENT_CASCADE_STEP,
    EVENT_GRAVITY_APPLIED,
    EVENT_LEVEL_GOAL_REACHED,
    EVENT_MATCH_CLEARED,
    EVENT_MATCH_FOUND,
    EVENT_REFILL_COMPLETED,
    EVENT_SCORE_CHANGED,
    EVENT_SHUFFLE_REQUEST,
    EVENT_SPECIAL_ACTIVATED,
    EVENT_SPECIAL_CREATED,
    EVENT_SWAP_REVERTED,
    EVENT_TILE_ACTIVATE_REQUEST,
    EVENT_TILE_SWAP_REQUEST,
)
from blitz.events.recorder import TurnOutcome, TurnRecorder, TurnStatus
from blitz.factories.levels import star_count
from blitz.systems.board_ops import (
    apply_gravity,
    clear_cells,
    get_board,
    get_cell,
    get_special,
    is_hole,
    refill_empty_cells,
    set_special,
    swap_cells,
)
from blitz.systems.match import MatchGroup, cells_of, find_match_groups
from blitz.systems.move_finder import MoveFinder
from blitz.systems.scoring import score_round
from blitz.systems.shuffle import ShuffleSystem
from blitz.systems.special_resolver import (
    Activation,
    Detonation,
    SpecialCreation,
    SpecialResolver,
    plan_special_creations,
)
from blitz.systems.turn_state_utils import (
    get_or_create_level_progress,
    get_or_create_score,
    get_or_create_turn_state,
)

logger = logging.getLogger(__name__)


class MatchResolutionSystem:
    """Runs a player intent through to a stable board.

    Every intent follows the same pipeline: the opening effect (swap, tap or
    combo), then cascade rounds until no match is left, then a deadlock check
    that shuffles when no legal move remains. All events of the turn are
    recorded into the returned ``TurnOutcome`` as well as emitted on the bus.
    """

    def __init__(self, world: World, event_bus: EventBus, shuffle_system: ShuffleSystem | None = None):
        self.world = world
        self.event_bus = event_bus
        self.resolver = SpecialResolver(world)
        self.move_finder = MoveFinder(world)
        self.shuffle_system = shuffle_system or ShuffleSystem(world, event_bus)
        self.event_bus.subscribe(EVENT_TILE_SWAP_REQUEST, self.on_swap_request)
        self.event_bus.subscribe(EVENT_TILE_ACTIVATE_REQUEST, self.on_activate_request)
        self.event_bus.subscribe(EVENT_SHUFFLE_REQUEST, self.on_shuffle_request)

    # ---------------------------------------------------------------- bus intents
    def on_swap_request(self, sender, **kwargs):
        src = kwargs.get('src')
        dst = kwargs.get('dst')
        if src is None or dst is None:
            return
        try:
            self.attempt_swap(src, dst)
        except (InvalidSwap, EngineBusy) as exc:
            logger.debug("Ignoring swap request %s -> %s: %s", src, dst, exc)

    def on_activate_request(self, sender, **kwargs):
        row = kwargs.get('row')
        col = kwargs.get('col')
        if row is None or col is None:
            return
        try:
            self.activate_tile((row, col))
        except (InvalidActivation, EngineBusy) as exc:
            logger.debug("Ignoring activation request at (%s, %s): %s", row, col, exc)

    def on_shuffle_request(self, sender, **kwargs):
        self.request_shuffle()

    # --------------------------------------------------------------- turn intents
    def attempt_swap(self, a, b) -> TurnOutcome:
        """Swap two adjacent cells and resolve the consequences.

        Raises InvalidSwap (board untouched) for out-of-bounds, hole, empty or
        non-adjacent cells and EngineBusy while another turn is resolving.
        """
        self._ensure_idle()
        a, b = self._validate_swap(a, b)
        state = self._begin_turn('swap')
        recorder = TurnRecorder(self.event_bus)
        try:
            special_a = get_special(self.world, a)
            special_b = get_special(self.world, b)
            swap_cells(self.world, a, b)
            # Specials travel with their candy, so after the swap a's special sits on b.
            if special_a is not None and special_b is not None:
                points = self._resolve_combo(recorder, a, b)
            elif SpecialKind.RAINBOW in (special_a, special_b):
                rainbow_at, partner = (b, a) if special_a is SpecialKind.RAINBOW else (a, b)
                cleared, activations = self.resolver.activate_rainbow(rainbow_at, get_cell(self.world, partner))
                points = self._sweep(
                    recorder, cleared, activations,
                    per_cell=POINTS_PER_RAINBOW_SWAP_CELL, reason='rainbow_swap',
                )
                points += self._cascade(recorder)
            elif find_match_groups(self.world):
                points = self._cascade(recorder, swap=(a, b))
            else:
                swap_cells(self.world, a, b)
                recorder.emit(EVENT_SWAP_REVERTED, src=a, dst=b)
                return recorder.outcome(TurnStatus.REVERTED, source=state.action_source)
            self._ensure_playable(recorder)
            logger.debug("Swap %s <-> %s scored %d over %d round(s)", a, b, points, state.cascade_depth)
            return recorder.outcome(
                TurnStatus.RESOLVED, score_delta=points, cascade_depth=state.cascade_depth,
                source=state.action_source,
            )
        finally:
            self._end_turn()

    def activate_tile(self, coord) -> TurnOutcome:
        """Detonate the special at coord on its own (the double-tap intent)."""
        self._ensure_idle()
        coord = self._validate_cell(coord, InvalidActivation)
        if get_special(self.world, coord) is None:
            raise InvalidActivation(f"No special tile at {tuple(coord)}")
        state = self._begin_turn('tap')
        recorder = TurnRecorder(self.event_bus)
        try:
            cleared, activations = self.resolver.activate_single(coord)
            points = self._sweep(recorder, cleared, activations, per_cell=POINTS_PER_TAP_CELL, reason='tap')
            points += self._cascade(recorder)
            self._ensure_playable(recorder)
            return recorder.outcome(
                TurnStatus.RESOLVED, score_delta=points, cascade_depth=state.cascade_depth,
                source=state.action_source,
            )
        finally:
            self._end_turn()

    def request_shuffle(self) -> Optional[TurnOutcome]:
        """Player-requested shuffle, allowed once per level attempt.

        Returns None when a turn is resolving or the allowance is spent.
        """
        state = get_or_create_turn_state(self.world)
        if state.busy or state.shuffle_used:
            return None
        state.shuffle_used = True
        recorder = TurnRecorder(self.event_bus)
        self.shuffle_system.shuffle(reason='manual', emit=recorder.emit)
        return recorder.outcome(TurnStatus.RESOLVED, source='shuffle')

    # ------------------------------------------------------------------- validation
    def _validate_cell(self, coord, error) -> Coord:
        try:
            coord = Coord(*coord)
        except TypeError as exc:
            raise error(f"Not a coordinate: {coord!r}") from exc
        board = get_board(self.world)
        if not board.in_bounds(coord):
            raise error(f"Cell {tuple(coord)} is outside the {board.rows}x{board.cols} board")
        if is_hole(self.world, coord):
            raise error(f"Cell {tuple(coord)} is a hole")
        return coord

    def _validate_swap(self, a, b) -> Tuple[Coord, Coord]:
        a = self._validate_cell(a, InvalidSwap)
        b = self._validate_cell(b, InvalidSwap)
        if not a.is_adjacent(b):
            raise InvalidSwap(f"Cells {tuple(a)} and {tuple(b)} are not adjacent")
        if get_cell(self.world, a) is None or get_cell(self.world, b) is None:
            raise InvalidSwap("Cannot swap an empty cell")
        return a, b

    def _ensure_idle(self) -> None:
        if get_or_create_turn_state(self.world).busy:
            raise EngineBusy("A turn is still resolving")

    def _begin_turn(self, source: str):
        state = get_or_create_turn_state(self.world)
        state.busy = True
        state.action_source = source
        state.cascade_depth = 0
        return state

    def _end_turn(self) -> None:
        state = get_or_create_turn_state(self.world)
        state.busy = False
        state.cascade_active = False

    # ------------------------------------------------------------- opening moves
    def _resolve_combo(self, recorder: TurnRecorder, a: Coord, b: Coord) -> int:
        result = self.resolver.combine(a, b)
        return self._sweep(
            recorder, result.cleared, result.activations,
            per_cell=POINTS_PER_COMBO_CELL, reason='combo', conversions=result.conversions,
        ) + self._cascade(recorder)

    def _sweep(
        self,
        recorder: TurnRecorder,
        cleared: Set[Coord],
        activations: Sequence[Activation],
        *,
        per_cell: int,
        reason: str,
        conversions: Iterable[SpecialCreation] = (),
    ) -> int:
        """Clear a special-driven sweep at a flat rate per emptied cell."""
        for creation in conversions:
            recorder.emit(EVENT_SPECIAL_CREATED, position=creation.position, kind=creation.kind, reason=reason)
        self._emit_activations(recorder, activations)
        typed = clear_cells(self.world, cleared)
        recorder.emit(EVENT_MATCH_CLEARED, positions=sorted(cleared), types=typed)
        delta = per_cell * len(typed)
        self._award(recorder, delta, multiplier=1.0, depth=0, reason=reason)
        self._gravity_and_refill(recorder)
        return delta

    # ------------------------------------------------------------------- cascade
    def _cascade(self, recorder: TurnRecorder, swap: Tuple[Coord, Coord] | None = None) -> int:
        """Resolve match rounds until the board is stable; returns points scored."""
        state = get_or_create_turn_state(self.world)
        state.cascade_active = True
        total = 0
        rounds = 0
        while True:
            groups = find_match_groups(self.world)
            if not groups:
                break
            state.cascade_depth += 1
            rounds += 1
            # Round index within this cascade drives the multiplier; swap ends only count once.
            total += self._resolve_round(recorder, groups, swap, rounds)
            swap = None
        if rounds:
            recorder.emit(EVENT_CASCADE_COMPLETE, depth=rounds)
        state.cascade_active = False
        return total

    def _resolve_round(
        self,
        recorder: TurnRecorder,
        groups: List[MatchGroup],
        swap: Tuple[Coord, Coord] | None,
        depth: int,
    ) -> int:
        matched = cells_of(groups)
        positions = sorted(matched)
        creations = plan_special_creations(groups, swap)
        protected = {creation.position for creation in creations}
        recorder.emit(EVENT_CASCADE_STEP, depth=depth, positions=positions)
        recorder.emit(EVENT_MATCH_FOUND, positions=positions, groups=list(groups), depth=depth)

        seeds: List[Detonation] = []
        for cell in positions:
            kind = get_special(self.world, cell)
            if kind is not None and cell not in protected:
                seeds.append((cell, kind, self.resolver.rainbow_target(cell, kind)))
        swept: Set[Coord] = set()
        activations: List[Activation] = []
        if seeds:
            activations = self.resolver.detonate(seeds, swept, protected=protected, doomed=matched)
        extra = swept - matched - protected

        score = score_round(len(matched), [c.kind for c in creations], len(extra), depth)
        typed = clear_cells(self.world, (matched | swept) - protected)
        for creation in creations:
            set_special(self.world, creation.position, creation.kind)
            recorder.emit(
                EVENT_SPECIAL_CREATED, position=creation.position, kind=creation.kind, reason='match',
            )
        self._emit_activations(recorder, activations)
        recorder.emit(EVENT_MATCH_CLEARED, positions=sorted((matched | swept) - protected), types=typed)
        self._award(
            recorder, score.total, multiplier=score.multiplier, depth=depth, reason='match',
            match_points=score.match_points, activation_points=score.activation_points,
        )
        self._gravity_and_refill(recorder)
        return score.total

    def _emit_activations(self, recorder: TurnRecorder, activations: Sequence[Activation]) -> None:
        for activation in activations:
            recorder.emit(
                EVENT_SPECIAL_ACTIVATED,
                position=activation.position,
                kind=activation.kind,
                cells=list(activation.cells),
                step=activation.step,
            )

    def _gravity_and_refill(self, recorder: TurnRecorder) -> None:
        moves = apply_gravity(self.world)
        recorder.emit(EVENT_GRAVITY_APPLIED, moves=moves)
        new_tiles = refill_empty_cells(self.world)
        if new_tiles:
            recorder.emit(EVENT_REFILL_COMPLETED, new_tiles=new_tiles)

    # ------------------------------------------------------------ bookkeeping
    def _award(self, recorder: TurnRecorder, delta: int, *, multiplier: float, depth: int, reason: str, **extra):
        score = get_or_create_score(self.world)
        score.total += delta
        source = get_or_create_turn_state(self.world).action_source
        recorder.emit(
            EVENT_SCORE_CHANGED,
            delta=delta, total=score.total, multiplier=multiplier, depth=depth, reason=reason,
            source=source, **extra,
        )
        progress = get_or_create_level_progress(self.world)
        if progress.goal and not progress.goal_reached and score.total >= progress.goal:
            progress.goal_reached = True
            recorder.emit(
                EVENT_LEVEL_GOAL_REACHED,
                slug=progress.slug, score=score.total, stars=star_count(score.total),
            )

    def _ensure_playable(self, recorder: TurnRecorder) -> None:
        try:
            self.move_finder.require_best_move()
        except NoLegalMove:
            logger.info("No legal move left after the turn; shuffling")
            recorder.emit(EVENT_BOARD_STALEMATE)
            self.shuffle_system.shuffle(reason='stalemate', emit=recorder.emit)
