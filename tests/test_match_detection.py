from blitz.components.coord import Coord
from blitz.components.special import SpecialKind
from blitz.systems.match import (
    MatchDirection,
    find_match_groups,
    find_matched_cells,
    scan_match_groups,
)
from tests.helpers import base_layout, make_board


def _types(rows):
    return {
        Coord(r, c): value
        for r, row in enumerate(rows)
        for c, value in enumerate(row)
        if value is not None
    }


def test_runs_are_maximal_and_never_split():
    groups = scan_match_groups(_types([[1, 1, 1, 1, 1, 2]]), 1, 6)

    assert len(groups) == 1
    assert groups[0].direction is MatchDirection.HORIZONTAL
    assert groups[0].length == 5
    assert groups[0].midpoint == Coord(0, 2)


def test_square_reported_alongside_overlapping_run():
    types = _types([
        [0, 0, 0],
        [0, 0, 1],
    ])

    groups = scan_match_groups(types, 2, 3)

    directions = sorted(group.direction.value for group in groups)
    assert directions == ["h", "square"]
    square = next(g for g in groups if g.direction is MatchDirection.SQUARE)
    assert set(square.cells) == {Coord(0, 0), Coord(0, 1), Coord(1, 0), Coord(1, 1)}


def test_cell_can_belong_to_several_groups():
    types = _types([
        [2, 2, 2],
        [2, 0, 1],
        [2, 1, 0],
    ])

    groups = scan_match_groups(types, 3, 3)

    assert [g.direction for g in groups] == [MatchDirection.HORIZONTAL, MatchDirection.VERTICAL]
    assert all(Coord(0, 0) in g.cells for g in groups)


def test_missing_cells_break_runs():
    groups = scan_match_groups(_types([[1, 1, None, 1, 1]]), 1, 5)
    assert groups == []


def test_board_scan_on_match_free_layout():
    world, _, _ = make_board(base_layout())
    assert find_match_groups(world) == []
    assert find_matched_cells(world) == set()


def test_rainbow_has_no_colour_for_matching():
    layout = base_layout()
    layout[0][1] = 0
    layout[0][2] = 0
    world, _, _ = make_board(layout, specials={(0, 1): SpecialKind.RAINBOW})
    assert find_match_groups(world) == []

    world, _, _ = make_board(layout, specials={(0, 1): SpecialKind.BOMB})
    assert find_matched_cells(world) == {Coord(0, 0), Coord(0, 1), Coord(0, 2)}


def test_holes_break_runs_on_the_board():
    layout = base_layout()
    layout[0][1] = 0
    layout[0][3] = 0
    world, _, _ = make_board(layout, mask=[(0, 2)])
    assert find_match_groups(world) == []
