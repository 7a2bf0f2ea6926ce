from dataclasses import dataclass

@dataclass(slots=True)
class ActiveSwitch:
    """Per-tile occupancy flag.

    active: True if the cell currently holds a candy; False if cleared/empty.
    Type information lives in a separate TileType component.
    """
    active: bool = True
