from __future__ import annotations

import random
from typing import List, Mapping, Sequence

from blitz.engine import PuzzleEngine
from blitz.events.bus import EventBus, EVENT_CASCADE_STEP
from blitz.events.recorder import TurnEvent, TurnOutcome
from blitz.systems.board import BoardSystem
from blitz.systems.board_ops import apply_layout
from blitz.world import create_world


def base_layout(rows: int = 8, cols: int = 8, types: int = 6) -> List[List[int]]:
    """Match-free layout: neighbours always differ along rows and columns."""
    return [[(2 * r + c) % types for c in range(cols)] for r in range(rows)]


def deadlock_layout(rows: int = 5, cols: int = 5) -> List[List[int]]:
    """Diagonal stripes of three types: no swap can produce a match."""
    return [[(r + c) % 3 for c in range(cols)] for r in range(rows)]


def make_board(
    layout: Sequence[Sequence[int]] | None = None,
    *,
    rows: int = 8,
    cols: int = 8,
    type_count: int = 6,
    mask=(),
    specials: Mapping | None = None,
    seed: int = 7,
):
    bus = EventBus()
    world = create_world(rng=random.Random(seed))
    board = BoardSystem(world, bus, rows, cols, type_count=type_count, mask=mask, seed=seed)
    if layout is not None:
        apply_layout(world, layout, specials)
    return world, bus, board


def make_engine(
    layout: Sequence[Sequence[int]] | None = None,
    *,
    specials: Mapping | None = None,
    seed: int = 7,
    **kwargs,
) -> PuzzleEngine:
    engine = PuzzleEngine(seed=seed, **kwargs)
    if layout is not None:
        apply_layout(engine.world, layout, specials)
    return engine


def round_events(outcome: TurnOutcome, depth: int = 1) -> List[TurnEvent]:
    """Events recorded for one cascade round, starting at its cascade_step."""
    events: List[TurnEvent] = []
    current = 0
    for event in outcome.events:
        if event.kind == EVENT_CASCADE_STEP:
            current = event.payload['depth']
        if current == depth:
            events.append(event)
    return events


def opening_events(outcome: TurnOutcome) -> List[TurnEvent]:
    """Events recorded before the first cascade round (tap, combo or rainbow sweep)."""
    events: List[TurnEvent] = []
    for event in outcome.events:
        if event.kind == EVENT_CASCADE_STEP:
            break
        events.append(event)
    return events
