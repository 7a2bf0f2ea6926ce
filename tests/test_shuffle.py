from blitz.components.special import SpecialKind
from blitz.events.bus import EVENT_BOARD_SHUFFLED
from blitz.systems.board_ops import get_cell, get_special, playable_positions
from blitz.systems.match import find_match_groups
from blitz.systems.move_finder import MoveFinder
from blitz.systems.shuffle import ShuffleSystem
from tests.helpers import deadlock_layout, make_board


def test_shuffle_always_ends_with_a_playable_board():
    for seed in range(5):
        world, bus, _ = make_board(
            deadlock_layout(), rows=5, cols=5, type_count=3, seed=seed,
            specials={(2, 2): SpecialKind.BOMB},
        )
        shuffled = []
        bus.subscribe(EVENT_BOARD_SHUFFLED, lambda s, **k: shuffled.append(k))

        ShuffleSystem(world, bus).shuffle()

        assert MoveFinder(world).has_legal_move()
        assert find_match_groups(world) == []
        assert get_special(world, (2, 2)) is None
        assert all(get_cell(world, c) is not None for c in playable_positions(world))
        assert len(shuffled) == 1
        assert shuffled[0]["reason"] == "stalemate"


def test_shuffle_respects_holes():
    world, bus, _ = make_board(rows=5, cols=5, type_count=3, mask=[(0, 0), (4, 4)])

    positions = ShuffleSystem(world, bus).shuffle(reason="manual")

    assert len(positions) == 23
    assert find_match_groups(world) == []
