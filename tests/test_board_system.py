from blitz.components.coord import Coord
from blitz.components.special import SpecialKind
from blitz.events.bus import (
    EVENT_SPECIAL_ACTIVATED,
    EVENT_SWAP_REVERTED,
    EVENT_TILE_ACTIVATE_REQUEST,
    EVENT_TILE_CLICK,
    EVENT_TILE_DESELECTED,
    EVENT_TILE_SELECTED,
    EVENT_TILE_SWAP_REQUEST,
)
from blitz.systems.board_ops import board_snapshot
from blitz.systems.match_resolution import MatchResolutionSystem
from blitz.systems.turn_state_utils import get_or_create_turn_state
from tests.helpers import base_layout, make_board


def _capture(bus, *names):
    log = []
    for name in names:
        bus.subscribe(name, lambda s, _name=name, **k: log.append((_name, k)))
    return log


def test_first_tap_selects_and_second_tap_deselects():
    world, bus, board = make_board(base_layout())
    log = _capture(bus, EVENT_TILE_SELECTED, EVENT_TILE_DESELECTED, EVENT_TILE_ACTIVATE_REQUEST)

    bus.emit(EVENT_TILE_CLICK, row=2, col=3)
    assert board.selected == Coord(2, 3)
    bus.emit(EVENT_TILE_CLICK, row=2, col=3)

    assert board.selected is None
    assert log == [
        (EVENT_TILE_SELECTED, {"row": 2, "col": 3}),
        (EVENT_TILE_DESELECTED, {"reason": "tap", "prev_row": 2, "prev_col": 3}),
    ]


def test_tapping_far_cell_moves_the_selection():
    world, bus, board = make_board(base_layout())
    log = _capture(bus, EVENT_TILE_SELECTED, EVENT_TILE_DESELECTED, EVENT_TILE_SWAP_REQUEST)

    bus.emit(EVENT_TILE_CLICK, row=0, col=0)
    bus.emit(EVENT_TILE_CLICK, row=5, col=5)

    assert board.selected == Coord(5, 5)
    assert [name for name, _ in log] == [EVENT_TILE_SELECTED, EVENT_TILE_DESELECTED, EVENT_TILE_SELECTED]
    assert log[1][1]["reason"] == "reselect"


def test_tapping_neighbour_requests_a_swap():
    world, bus, board = make_board(base_layout())
    MatchResolutionSystem(world, bus)
    log = _capture(bus, EVENT_TILE_SWAP_REQUEST, EVENT_SWAP_REVERTED)
    before = board_snapshot(world)

    bus.emit(EVENT_TILE_CLICK, row=0, col=0)
    bus.emit(EVENT_TILE_CLICK, row=0, col=1)

    assert board.selected is None
    assert log[0] == (EVENT_TILE_SWAP_REQUEST, {"src": Coord(0, 0), "dst": Coord(0, 1)})
    assert log[1][0] == EVENT_SWAP_REVERTED
    assert board_snapshot(world) == before


def test_double_tap_on_special_activates_it():
    world, bus, board = make_board(base_layout(), specials={(2, 2): SpecialKind.ROCKET_H})
    MatchResolutionSystem(world, bus)
    log = _capture(bus, EVENT_TILE_ACTIVATE_REQUEST, EVENT_SPECIAL_ACTIVATED)

    bus.emit(EVENT_TILE_CLICK, row=2, col=2)
    bus.emit(EVENT_TILE_CLICK, row=2, col=2)

    assert log[0] == (EVENT_TILE_ACTIVATE_REQUEST, {"row": 2, "col": 2})
    assert log[1][0] == EVENT_SPECIAL_ACTIVATED
    assert log[1][1]["kind"] is SpecialKind.ROCKET_H


def test_taps_on_holes_or_while_busy_are_ignored():
    world, bus, board = make_board(mask=[(1, 1)])
    log = _capture(bus, EVENT_TILE_SELECTED)

    bus.emit(EVENT_TILE_CLICK, row=1, col=1)
    bus.emit(EVENT_TILE_CLICK, row=9, col=0)
    get_or_create_turn_state(world).busy = True
    bus.emit(EVENT_TILE_CLICK, row=0, col=0)

    assert log == []
    assert board.selected is None
