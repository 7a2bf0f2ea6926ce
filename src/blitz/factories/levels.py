from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Mapping

from blitz.components.coord import Coord
from blitz.constants import MAX_TILE_TYPES, STAR_THRESHOLDS


@dataclass(frozen=True)
class LevelSpec:
    slug: str
    name: str
    type_count: int = MAX_TILE_TYPES
    goal: int = STAR_THRESHOLDS[0]
    time_limit: int = 120  # seconds, enforced by the presentation layer
    mask: FrozenSet[Coord] = field(default_factory=frozenset)


_LEVEL_SPECS: Mapping[str, LevelSpec] = {
    "chocolate": LevelSpec(slug="chocolate", name="Chocolate Factory"),
    "lollipop": LevelSpec(slug="lollipop", name="Lollipop Lane"),
    "gummy": LevelSpec(slug="gummy", name="Gummy Gardens"),
    "cupcake": LevelSpec(slug="cupcake", name="Cupcake Castle"),
    "cookie": LevelSpec(slug="cookie", name="Cookie Kingdom"),
    "donut": LevelSpec(slug="donut", name="Donut Dimension"),
}


def all_level_specs() -> Iterable[LevelSpec]:
    return _LEVEL_SPECS.values()


def get_level_spec(key: str | int) -> LevelSpec | None:
    """Look a level up by slug or by its position in the catalogue."""
    if isinstance(key, int):
        specs = list(_LEVEL_SPECS.values())
        if 0 <= key < len(specs):
            return specs[key]
        return None
    return _LEVEL_SPECS.get(key)


def star_count(score: int) -> int:
    """Stars earned for a final score: one per threshold reached."""
    return sum(1 for threshold in STAR_THRESHOLDS if score >= threshold)
