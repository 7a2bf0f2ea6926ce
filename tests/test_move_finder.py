import pytest

from blitz.components.coord import Coord
from blitz.components.special import SpecialKind
from blitz.errors import NoLegalMove
from blitz.systems.move_finder import MoveFinder
from tests.helpers import base_layout, deadlock_layout, make_board


def _three_layout():
    layout = base_layout()
    layout[0][1] = 0
    layout[1][2] = 0
    return layout


def _four_layout():
    layout = base_layout()
    layout[0][2] = 0
    layout[0][3] = 0
    layout[1][1] = 0
    return layout


def test_deadlocked_board_has_no_move():
    world, _, _ = make_board(deadlock_layout(), rows=5, cols=5, type_count=3)
    finder = MoveFinder(world)

    assert finder.find_best_move() is None
    assert not finder.has_legal_move()
    with pytest.raises(NoLegalMove):
        finder.require_best_move()


def test_evaluate_counts_cells_and_group_bonus():
    world, _, _ = make_board(_three_layout())
    assert MoveFinder(world).evaluate(Coord(0, 2), Coord(1, 2)) == 3

    world, _, _ = make_board(_four_layout())
    assert MoveFinder(world).evaluate(Coord(0, 1), Coord(1, 1)) == 4 + 20


def test_special_endpoint_adds_bonus():
    world, _, _ = make_board(_four_layout(), specials={(1, 1): SpecialKind.BOMB})
    assert MoveFinder(world).evaluate(Coord(0, 1), Coord(1, 1)) == 4 + 20 + 30


def test_non_matching_swap_scores_zero():
    world, _, _ = make_board(base_layout())
    assert MoveFinder(world).evaluate(Coord(0, 0), Coord(0, 1)) == 0


def test_best_move_prefers_the_bigger_match():
    world, _, _ = make_board(_four_layout())

    move = MoveFinder(world).find_best_move()

    assert move is not None
    assert move.score >= 24
    assert {move.a, move.b} == {Coord(0, 1), Coord(1, 1)}


def test_candidate_swaps_skip_holes():
    world, _, _ = make_board(mask=[(0, 1)])
    pairs = MoveFinder(world).candidate_swaps()
    assert all(Coord(0, 1) not in pair for pair in pairs)
    assert (Coord(0, 0), Coord(1, 0)) in pairs
