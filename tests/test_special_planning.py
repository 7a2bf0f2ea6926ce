from blitz.components.coord import Coord
from blitz.components.special import SpecialKind
from blitz.systems.match import MatchDirection, MatchGroup, scan_match_groups
from blitz.systems.special_resolver import plan_special_creations, special_for_group


def _row_group(row, start, length, type_id=0):
    cells = tuple(Coord(row, c) for c in range(start, start + length))
    return MatchGroup(cells, MatchDirection.HORIZONTAL, type_id)


def _col_group(col, start, length, type_id=0):
    cells = tuple(Coord(r, col) for r in range(start, start + length))
    return MatchGroup(cells, MatchDirection.VERTICAL, type_id)


def test_special_kind_per_group_shape():
    square = MatchGroup(
        (Coord(0, 0), Coord(0, 1), Coord(1, 0), Coord(1, 1)), MatchDirection.SQUARE, 0,
    )
    assert special_for_group(_row_group(0, 0, 3)) is None
    assert special_for_group(_row_group(0, 0, 4)) is SpecialKind.ROCKET_V
    assert special_for_group(_col_group(0, 0, 4)) is SpecialKind.ROCKET_H
    assert special_for_group(_row_group(0, 0, 6)) is SpecialKind.RAINBOW
    assert special_for_group(square) is SpecialKind.LIGHTNING


def test_horizontal_four_lands_rocket_v_on_swap_end():
    group = _row_group(2, 1, 4)

    creations = plan_special_creations([group], swap=(Coord(2, 4), Coord(1, 4)))

    assert len(creations) == 1
    assert creations[0].position == Coord(2, 4)
    assert creations[0].kind is SpecialKind.ROCKET_V


def test_without_swap_special_lands_on_midpoint():
    creations = plan_special_creations([_col_group(3, 1, 5)])

    assert [(c.position, c.kind) for c in creations] == [(Coord(3, 3), SpecialKind.RAINBOW)]


def test_crossing_threes_make_a_bomb_on_the_shared_cell():
    types = {Coord(0, c): 0 for c in range(3)}
    types.update({Coord(r, 2): 0 for r in range(1, 3)})

    creations = plan_special_creations(scan_match_groups(types, 3, 3))

    assert [(c.position, c.kind) for c in creations] == [(Coord(0, 2), SpecialKind.BOMB)]


def test_crossing_threes_of_different_types_make_nothing():
    h_group = _row_group(1, 0, 3, type_id=0)
    v_group = _col_group(1, 0, 3, type_id=1)
    assert plan_special_creations([h_group, v_group]) == []


def test_a_cell_is_claimed_once_and_longest_group_wins():
    # A 5-run and a 4-run whose midpoints would collide on (2, 2).
    five = _row_group(2, 0, 5)
    four = _col_group(2, 0, 4, type_id=1)

    creations = plan_special_creations([four, five])

    assert [(c.position, c.kind) for c in creations] == [(Coord(2, 2), SpecialKind.RAINBOW)]
