import random

from esper import World

from blitz.components.level_progress import LevelProgress
from blitz.components.score import Score
from blitz.components.turn_state import TurnState


def create_world(*, rng: random.Random | None = None) -> World:
    """Create a world holding the per-attempt resources.

    The board itself is attached later by ``BoardSystem``.
    """
    world = World()
    setattr(world, "random", rng or random.Random())

    # Single resource entity for turn, score and level bookkeeping.
    world.create_entity(TurnState(), Score(), LevelProgress())
    return world
