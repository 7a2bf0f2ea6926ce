from dataclasses import dataclass
from enum import Enum


class SpecialKind(Enum):
    ROCKET_H = "rocket-h"
    ROCKET_V = "rocket-v"
    BOMB = "bomb"
    RAINBOW = "rainbow"
    LIGHTNING = "lightning"

    @property
    def is_rocket(self) -> bool:
        return self in (SpecialKind.ROCKET_H, SpecialKind.ROCKET_V)


@dataclass(slots=True)
class SpecialTile:
    """Power-up tag sitting on top of a cell's candy."""
    kind: SpecialKind
