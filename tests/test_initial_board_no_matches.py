import random

import pytest

from blitz.errors import InitializationFailure
from blitz.events.bus import EventBus, EVENT_BOARD_READY
from blitz.systems.board import BoardSystem
from blitz.systems.board_ops import get_cell, get_special, playable_positions
from blitz.systems.match import find_match_groups
from blitz.systems.move_finder import MoveFinder
from blitz.world import create_world


def _board(**kwargs):
    bus = EventBus()
    world = create_world(rng=random.Random(kwargs.get("seed")))
    return world, bus, BoardSystem(world, bus, **kwargs)


@pytest.mark.parametrize("seed", range(8))
def test_initial_board_has_no_matches_and_a_move(seed):
    world, _, _ = _board(seed=seed)

    assert find_match_groups(world) == []
    assert MoveFinder(world).has_legal_move()
    for coord in playable_positions(world):
        assert get_cell(world, coord) is not None
        assert get_special(world, coord) is None


def test_initial_board_with_mask_and_fewer_types():
    mask = [(0, 0), (0, 7), (7, 0), (7, 7), (3, 3), (3, 4)]
    world, _, _ = _board(type_count=4, mask=mask, seed=3)

    assert len(playable_positions(world)) == 58
    assert find_match_groups(world) == []
    assert MoveFinder(world).has_legal_move()
    assert all(0 <= get_cell(world, c) < 4 for c in playable_positions(world))


def test_same_seed_gives_same_board():
    world_a, _, _ = _board(seed=42)
    world_b, _, _ = _board(seed=42)
    cells = playable_positions(world_a)
    assert [get_cell(world_a, c) for c in cells] == [get_cell(world_b, c) for c in cells]


def test_init_board_rebuilds_for_a_new_mask_and_announces_it():
    world, bus, board = _board(seed=1)
    ready = []
    bus.subscribe(EVENT_BOARD_READY, lambda s, **k: ready.append(k))

    result = board.init_board(5, mask=[(4, 4)], seed=9)

    assert result.type_count == 5
    assert (4, 4) in result.mask
    assert len(playable_positions(world)) == 63
    assert ready == [{"rows": 8, "cols": 8, "type_count": 5}]


def test_init_board_validates_arguments():
    world, _, board = _board(seed=1)
    with pytest.raises(ValueError):
        board.init_board(1)
    with pytest.raises(ValueError):
        board.init_board(7)
    with pytest.raises(ValueError):
        board.init_board(6, mask=[(8, 0)])


def test_board_without_adjacent_playable_cells_fails_to_initialise():
    mask = [(r, c) for r in range(3) for c in range(3) if (r, c) != (1, 1)]
    with pytest.raises(InitializationFailure):
        _board(rows=3, cols=3, type_count=3, mask=mask, seed=0)
