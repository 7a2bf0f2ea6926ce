from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from esper import World

from blitz.components.active_switch import ActiveSwitch
from blitz.components.board import Board
from blitz.components.board_position import BoardPosition
from blitz.components.coord import Coord
from blitz.components.hole import Hole
from blitz.components.special import SpecialKind, SpecialTile
from blitz.components.tile import HOLE, CellValue, TileType

TypeEntry = Tuple[int, int, int]
CellSnapshot = Dict[Coord, Tuple[CellValue, Optional[SpecialKind]]]


@dataclass(slots=True)
class GravityMove:
    source: Coord
    target: Coord
    type_id: int
    special: Optional[SpecialKind] = None


def get_board(world: World) -> Board:
    for _, board in world.get_component(Board):
        return board
    raise RuntimeError("Board not found")


def _cell_entity(world: World, coord) -> int:
    board = get_board(world)
    entity = board.cells.get(Coord(*coord))
    if entity is None:
        raise KeyError(f"Cell {tuple(coord)} is outside the {board.rows}x{board.cols} board")
    return entity


def is_hole(world: World, coord) -> bool:
    return world.has_component(_cell_entity(world, coord), Hole)


def get_cell(world: World, coord) -> CellValue:
    """Return the candy type at coord, None when empty, HOLE when masked."""
    entity = _cell_entity(world, coord)
    if world.has_component(entity, Hole):
        return HOLE
    if not world.component_for_entity(entity, ActiveSwitch).active:
        return None
    return world.component_for_entity(entity, TileType).type_id


def set_cell(world: World, coord, value: CellValue) -> None:
    entity = _cell_entity(world, coord)
    if world.has_component(entity, Hole):
        raise ValueError(f"Cell {tuple(coord)} is a hole and cannot hold a tile")
    switch: ActiveSwitch = world.component_for_entity(entity, ActiveSwitch)
    if value is None:
        switch.active = False
        return
    board = get_board(world)
    if not 0 <= value < board.type_count:
        raise ValueError(f"Tile type {value} outside [0, {board.type_count})")
    world.component_for_entity(entity, TileType).type_id = value
    switch.active = True


def get_special(world: World, coord) -> Optional[SpecialKind]:
    special = world.try_component(_cell_entity(world, coord), SpecialTile)
    return special.kind if special is not None else None


def set_special(world: World, coord, kind: Optional[SpecialKind]) -> None:
    entity = _cell_entity(world, coord)
    if world.has_component(entity, Hole):
        raise ValueError(f"Cell {tuple(coord)} is a hole and cannot hold a special")
    existing = world.try_component(entity, SpecialTile)
    if kind is None:
        if existing is not None:
            world.remove_component(entity, SpecialTile)
        return
    if existing is not None:
        existing.kind = kind
    else:
        world.add_component(entity, SpecialTile(kind=kind))


def swap_cells(world: World, a, b) -> None:
    """Exchange candy, occupancy and special tag of two adjacent playable cells."""
    a, b = Coord(*a), Coord(*b)
    if not a.is_adjacent(b):
        raise ValueError(f"Cells {tuple(a)} and {tuple(b)} are not adjacent")
    if is_hole(world, a) or is_hole(world, b):
        raise ValueError("Holes cannot be swapped")
    value_a, special_a = get_cell(world, a), get_special(world, a)
    value_b, special_b = get_cell(world, b), get_special(world, b)
    set_cell(world, a, value_b)
    set_cell(world, b, value_a)
    set_special(world, a, special_b)
    set_special(world, b, special_a)


def playable_positions(world: World) -> List[Coord]:
    board = get_board(world)
    return [
        coord for coord in sorted(board.cells)
        if coord not in board.mask
    ]


def count_cells(world: World) -> int:
    board = get_board(world)
    return board.rows * board.cols - len(board.mask)


def for_each_playable(world: World, fn: Callable[[Coord, CellValue, Optional[SpecialKind]], None]) -> None:
    for coord in playable_positions(world):
        fn(coord, get_cell(world, coord), get_special(world, coord))


def active_tile_type_map(world: World) -> Dict[Coord, int]:
    """Return mapping of occupied playable positions to their candy types."""
    mapping: Dict[Coord, int] = {}
    for _, (position, switch, tile) in world.get_components(BoardPosition, ActiveSwitch, TileType):
        if switch.active:
            mapping[Coord(position.row, position.col)] = tile.type_id
    return mapping


def special_map(world: World) -> Dict[Coord, SpecialKind]:
    return {
        Coord(position.row, position.col): special.kind
        for _, (position, special) in world.get_components(BoardPosition, SpecialTile)
    }


def matchable_type_map(world: World) -> Dict[Coord, int]:
    """Like active_tile_type_map, minus rainbow tiles which carry no colour for matching."""
    types = active_tile_type_map(world)
    for coord, kind in special_map(world).items():
        if kind is SpecialKind.RAINBOW:
            types.pop(coord, None)
    return types


def board_snapshot(world: World) -> CellSnapshot:
    return {
        coord: (get_cell(world, coord), get_special(world, coord))
        for coord in sorted(get_board(world).cells)
    }


def apply_layout(
    world: World,
    layout: Sequence[Sequence[CellValue]],
    specials: Mapping[Tuple[int, int], SpecialKind] | None = None,
) -> None:
    """Overwrite every playable cell from a row-major layout; None means empty.

    Entries over holes are ignored. Existing specials are dropped unless listed in
    ``specials``.
    """
    board = get_board(world)
    if len(layout) != board.rows or any(len(row) != board.cols for row in layout):
        raise ValueError(f"Layout must be {board.rows}x{board.cols}")
    for row in range(board.rows):
        for col in range(board.cols):
            coord = Coord(row, col)
            if coord in board.mask:
                continue
            value = layout[row][col]
            set_cell(world, coord, None if value == HOLE else value)
            set_special(world, coord, None)
    for coord, kind in (specials or {}).items():
        set_special(world, coord, kind)


def column_segments(board: Board, col: int) -> List[List[int]]:
    """Split a column into runs of consecutive playable rows, top to bottom."""
    segments: List[List[int]] = []
    current: List[int] = []
    for row in range(board.rows):
        if Coord(row, col) in board.mask:
            if current:
                segments.append(current)
            current = []
            continue
        current.append(row)
    if current:
        segments.append(current)
    return segments


def apply_gravity(world: World) -> List[GravityMove]:
    """Compact occupied cells to the bottom of each playable column segment.

    Holes split a column; tiles never fall through them. Specials travel with their tile.
    """
    board = get_board(world)
    moves: List[GravityMove] = []
    for col in range(board.cols):
        for segment in column_segments(board, col):
            filled: List[Tuple[int, int, Optional[SpecialKind]]] = []
            for row in segment:
                value = get_cell(world, (row, col))
                if value is not None:
                    filled.append((row, value, get_special(world, (row, col))))
            if len(filled) == len(segment):
                continue
            targets = segment[len(segment) - len(filled):]
            for row in segment:
                set_cell(world, (row, col), None)
                set_special(world, (row, col), None)
            for target_row, (source_row, value, special) in zip(targets, filled):
                set_cell(world, (target_row, col), value)
                set_special(world, (target_row, col), special)
                if source_row != target_row:
                    moves.append(GravityMove(
                        source=Coord(source_row, col),
                        target=Coord(target_row, col),
                        type_id=value,
                        special=special,
                    ))
    return moves


def refill_empty_cells(world: World) -> List[Coord]:
    """Fill every empty playable cell with a uniformly random plain candy."""
    board = get_board(world)
    rng = world_rng(world)
    spawned: List[Coord] = []
    for coord in playable_positions(world):
        if get_cell(world, coord) is not None:
            continue
        set_cell(world, coord, rng.randrange(board.type_count))
        set_special(world, coord, None)
        spawned.append(coord)
    return spawned


def clear_cells(world: World, positions) -> List[TypeEntry]:
    """Empty the given cells and drop their specials; returns (row, col, type) of what was removed."""
    typed: List[TypeEntry] = []
    for coord in sorted(positions):
        value = get_cell(world, coord)
        if value is None or value == HOLE:
            continue
        typed.append((coord[0], coord[1], value))
        set_cell(world, coord, None)
        set_special(world, coord, None)
    return typed


def world_rng(world: World) -> random.Random:
    candidate = getattr(world, "random", None)
    if isinstance(candidate, random.Random):
        return candidate
    return random.Random()
