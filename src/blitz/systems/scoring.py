from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from blitz.components.special import SpecialKind
from blitz.constants import COMBO_STEP_FACTOR, POINTS_PER_ACTIVATION_CELL, POINTS_PER_MATCHED_CELL

CREATION_BONUS = {
    SpecialKind.RAINBOW: 50,
    SpecialKind.BOMB: 25,
    SpecialKind.ROCKET_H: 20,
    SpecialKind.ROCKET_V: 20,
    SpecialKind.LIGHTNING: 15,
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def combo_multiplier(combo_index: int) -> float:
    """1 for the opening round of a turn, 1.5 x round number afterwards."""
    if combo_index <= 1:
        return 1.0
    return COMBO_STEP_FACTOR * combo_index


@dataclass(frozen=True, slots=True)
class RoundScore:
    match_points: int
    activation_points: int
    multiplier: float

    @property
    def total(self) -> int:
        return self.match_points + self.activation_points


def score_round(
    matched_count: int,
    created: Iterable[SpecialKind],
    activation_count: int,
    combo_index: int,
) -> RoundScore:
    multiplier = combo_multiplier(combo_index)
    baseline = matched_count * POINTS_PER_MATCHED_CELL
    baseline += sum(CREATION_BONUS[kind] for kind in created)
    extra = activation_count * POINTS_PER_ACTIVATION_CELL
    return RoundScore(
        match_points=round_half_up(baseline * multiplier),
        activation_points=round_half_up(extra * multiplier),
        multiplier=multiplier,
    )
