from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from esper import World

from blitz.components.coord import Coord
from blitz.components.special import SpecialKind
from blitz.constants import (
    BOMB_COMBO_RADIUS,
    BOMB_RADIUS,
    LIGHTNING_COMBO_STRIKES,
    LIGHTNING_CONVERT_STRIKES,
    LIGHTNING_STRIKES,
)
from blitz.systems.board_ops import (
    active_tile_type_map,
    get_board,
    get_cell,
    get_special,
    playable_positions,
    set_special,
    world_rng,
)
from blitz.systems.match import MatchDirection, MatchGroup

ROCKETS = (SpecialKind.ROCKET_H, SpecialKind.ROCKET_V)

# (position, kind, rainbow target type or None)
Detonation = Tuple[Coord, SpecialKind, Optional[int]]


@dataclass(frozen=True, slots=True)
class SpecialCreation:
    position: Coord
    kind: SpecialKind
    type_id: int


@dataclass(frozen=True, slots=True)
class Activation:
    """One special going off: where, what, and the cells its effect covered."""

    position: Coord
    kind: SpecialKind
    cells: Tuple[Coord, ...]
    step: int


@dataclass(slots=True)
class ComboResult:
    cleared: Set[Coord] = field(default_factory=set)
    activations: List[Activation] = field(default_factory=list)
    conversions: List[SpecialCreation] = field(default_factory=list)


def special_for_group(group: MatchGroup) -> Optional[SpecialKind]:
    if group.direction is MatchDirection.SQUARE:
        return SpecialKind.LIGHTNING
    if group.length >= 5:
        return SpecialKind.RAINBOW
    if group.length == 4:
        # A rocket clears the line perpendicular to the run that made it.
        if group.direction is MatchDirection.HORIZONTAL:
            return SpecialKind.ROCKET_V
        return SpecialKind.ROCKET_H
    return None


def plan_special_creations(
    groups: Sequence[MatchGroup],
    swap: Tuple[Coord, Coord] | None = None,
) -> List[SpecialCreation]:
    """Decide which specials a round of matches creates and where they land.

    Longest groups claim first (scan order breaks ties). A group lands its special on
    whichever swap endpoint it contains, otherwise on its midpoint. Crossing
    horizontal and vertical 3-runs of one type add a bomb on the shared cell. Each
    cell is claimed at most once.
    """
    ordered = sorted(groups, key=lambda g: -g.length)
    creations: List[SpecialCreation] = []
    protected: Set[Coord] = set()
    for group in ordered:
        kind = special_for_group(group)
        if kind is None:
            continue
        position = None
        if swap is not None:
            for endpoint in swap:
                if endpoint in group.cells:
                    position = Coord(*endpoint)
                    break
        if position is None:
            position = group.midpoint
        if position in protected:
            continue
        creations.append(SpecialCreation(position, kind, group.type_id))
        protected.add(position)

    h_runs = [g for g in ordered if g.direction is MatchDirection.HORIZONTAL and g.length == 3]
    v_runs = [g for g in ordered if g.direction is MatchDirection.VERTICAL and g.length == 3]
    for h_group in h_runs:
        for v_group in v_runs:
            if h_group.type_id != v_group.type_id:
                continue
            for cell in sorted(set(h_group.cells) & set(v_group.cells)):
                if cell in protected:
                    continue
                creations.append(SpecialCreation(cell, SpecialKind.BOMB, h_group.type_id))
                protected.add(cell)
    return creations


def most_common_type(world: World) -> Optional[int]:
    counts = Counter(active_tile_type_map(world).values())
    if not counts:
        return None
    best = max(counts.values())
    return min(type_id for type_id, count in counts.items() if count == best)


class SpecialResolver:
    """Computes what specials clear, including chain reactions and pair combos.

    The resolver only reads candies and consumes special tags; emptying the swept
    cells is left to the caller so scoring can see what was there.
    """

    def __init__(self, world: World):
        self.world = world

    # ------------------------------------------------------------------ effects
    def effect_cells(
        self,
        coord: Coord,
        kind: SpecialKind,
        *,
        target_type: Optional[int] = None,
        exclude: Iterable[Coord] = (),
    ) -> Set[Coord]:
        board = get_board(self.world)
        row, col = coord
        if kind is SpecialKind.ROCKET_H:
            return self._playable(Coord(row, c) for c in range(board.cols))
        if kind is SpecialKind.ROCKET_V:
            return self._playable(Coord(r, col) for r in range(board.rows))
        if kind is SpecialKind.BOMB:
            return self._block(coord, BOMB_RADIUS)
        if kind is SpecialKind.RAINBOW:
            if target_type is None:
                return set()
            return {
                cell for cell, type_id in active_tile_type_map(self.world).items()
                if type_id == target_type
            }
        if kind is SpecialKind.LIGHTNING:
            skip = set(exclude)
            skip.add(coord)
            return self._strike(LIGHTNING_STRIKES, skip)
        raise ValueError(f"Unknown special kind {kind!r}")

    def _playable(self, cells: Iterable[Coord]) -> Set[Coord]:
        mask = get_board(self.world).mask
        return {cell for cell in cells if cell not in mask}

    def _block(self, center: Coord, radius: int) -> Set[Coord]:
        board = get_board(self.world)
        return self._playable(
            Coord(center.row + dr, center.col + dc)
            for dr in range(-radius, radius + 1)
            for dc in range(-radius, radius + 1)
            if board.in_bounds((center.row + dr, center.col + dc))
        )

    def _rows_and_cols(self, rows: Iterable[int], cols: Iterable[int]) -> Set[Coord]:
        board = get_board(self.world)
        rows = [r for r in rows if 0 <= r < board.rows]
        cols = [c for c in cols if 0 <= c < board.cols]
        cells = [Coord(r, c) for r in rows for c in range(board.cols)]
        cells += [Coord(r, c) for c in cols for r in range(board.rows)]
        return self._playable(cells)

    def _strike(self, count: int, skip: Set[Coord]) -> Set[Coord]:
        candidates = sorted(c for c in active_tile_type_map(self.world) if c not in skip)
        if not candidates:
            return set()
        rng = world_rng(self.world)
        return set(rng.sample(candidates, min(count, len(candidates))))

    # ------------------------------------------------------------ chain reaction
    def detonate(
        self,
        seeds: Sequence[Detonation],
        cleared: Set[Coord],
        *,
        protected: Iterable[Coord] = (),
        doomed: Iterable[Coord] = (),
        first_step: int = 0,
    ) -> List[Activation]:
        """Fire the seeds and every special their effects reach, breadth first.

        Swept cells are unioned into ``cleared``. Each tag is consumed when queued, so
        the worklist drains once no unvisited special is reachable; no iteration cap
        is needed. Protected cells (fresh specials of this round) are neither swept
        nor triggered. Doomed cells are already being cleared by the caller, so
        random strikes skip them.
        """
        protected = set(protected)
        doomed = set(doomed)
        queue: deque[Detonation] = deque()
        for coord, kind, target in seeds:
            coord = Coord(*coord)
            set_special(self.world, coord, None)
            cleared.add(coord)
            queue.append((coord, kind, target))

        activations: List[Activation] = []
        step = first_step
        while queue:
            coord, kind, target = queue.popleft()
            cells = self.effect_cells(coord, kind, target_type=target, exclude=cleared | protected | doomed)
            cells -= protected
            activations.append(Activation(coord, kind, tuple(sorted(cells)), step))
            step += 1
            for cell in sorted(cells):
                cleared.add(cell)
                chained = get_special(self.world, cell)
                if chained is None:
                    continue
                set_special(self.world, cell, None)
                queue.append((cell, chained, self.rainbow_target(cell, chained)))
        return activations

    def chain_from(self, cleared: Set[Coord], *, first_step: int = 0) -> List[Activation]:
        """Trigger every special already sitting inside ``cleared``."""
        seeds: List[Detonation] = []
        for cell in sorted(cleared):
            kind = get_special(self.world, cell)
            if kind is not None:
                seeds.append((cell, kind, self.rainbow_target(cell, kind)))
        if not seeds:
            return []
        return self.detonate(seeds, cleared, first_step=first_step)

    def rainbow_target(self, cell: Coord, kind: SpecialKind) -> Optional[int]:
        """A rainbow caught by a match or chain sweeps the candy it sits on."""
        if kind is not SpecialKind.RAINBOW:
            return None
        return get_cell(self.world, cell)

    # ----------------------------------------------------------- single triggers
    def activate_single(self, coord: Coord) -> Tuple[Set[Coord], List[Activation]]:
        """Detonate the special at coord on its own (double tap)."""
        coord = Coord(*coord)
        kind = get_special(self.world, coord)
        if kind is None:
            raise ValueError(f"No special at {tuple(coord)}")
        target = most_common_type(self.world) if kind is SpecialKind.RAINBOW else None
        cleared: Set[Coord] = set()
        activations = self.detonate([(coord, kind, target)], cleared)
        return cleared, activations

    def activate_rainbow(self, coord: Coord, target_type: Optional[int]) -> Tuple[Set[Coord], List[Activation]]:
        """Rainbow swapped with a plain candy: sweep every candy of the partner's type."""
        cleared: Set[Coord] = set()
        activations = self.detonate([(Coord(*coord), SpecialKind.RAINBOW, target_type)], cleared)
        return cleared, activations

    # ---------------------------------------------------------------- pair combos
    def combine(self, a: Coord, b: Coord) -> ComboResult:
        """Resolve two swapped specials. ``a`` is the swap point for area combos."""
        a, b = Coord(*a), Coord(*b)
        kind_a = get_special(self.world, a)
        kind_b = get_special(self.world, b)
        if kind_a is None or kind_b is None:
            raise ValueError("combine() needs a special on both cells")
        kinds = {kind_a, kind_b}
        result = ComboResult(cleared={a, b})
        set_special(self.world, a, None)
        set_special(self.world, b, None)

        if kinds == {SpecialKind.RAINBOW}:
            result.cleared.update(playable_positions(self.world))
        elif SpecialKind.RAINBOW in kinds:
            partner, partner_kind = (b, kind_b) if kind_a is SpecialKind.RAINBOW else (a, kind_a)
            target = get_cell(self.world, partner)
            colour_cells = sorted(
                cell for cell, type_id in active_tile_type_map(self.world).items()
                if type_id == target and cell not in (a, b)
            )
            self._staged(colour_cells, partner_kind, result)
        elif kinds <= set(ROCKETS):
            result.cleared |= self._rows_and_cols([a.row], [a.col])
        elif kinds == {SpecialKind.BOMB}:
            result.cleared |= self._block(a, BOMB_COMBO_RADIUS)
        elif SpecialKind.BOMB in kinds and kinds & set(ROCKETS):
            result.cleared |= self._rows_and_cols(
                range(a.row - 1, a.row + 2), range(a.col - 1, a.col + 2)
            )
        elif kinds == {SpecialKind.LIGHTNING}:
            result.cleared |= self._strike(LIGHTNING_COMBO_STRIKES, set(result.cleared))
        else:
            partner_kind = kind_b if kind_a is SpecialKind.LIGHTNING else kind_a
            targets = sorted(self._strike(LIGHTNING_CONVERT_STRIKES, set(result.cleared)))
            self._staged(targets, partner_kind, result)

        result.activations += self.chain_from(result.cleared, first_step=len(result.activations))
        return result

    def _staged(self, cells: Sequence[Coord], kind: SpecialKind, result: ComboResult) -> None:
        """Turn each cell into ``kind`` then set them off one after another."""
        rng = world_rng(self.world)
        seeds: List[Detonation] = []
        for cell in cells:
            placed = rng.choice(ROCKETS) if kind.is_rocket else kind
            set_special(self.world, cell, placed)
            type_id = get_cell(self.world, cell)
            result.conversions.append(SpecialCreation(cell, placed, type_id))
            seeds.append((cell, placed, None))
        result.activations += self.detonate(seeds, result.cleared)
