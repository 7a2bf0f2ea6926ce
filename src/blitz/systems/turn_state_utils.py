from esper import World

from blitz.components.level_progress import LevelProgress
from blitz.components.score import Score
from blitz.components.turn_state import TurnState


def get_or_create_turn_state(world: World) -> TurnState:
    """Return the shared TurnState component, creating it if absent."""
    existing = list(world.get_component(TurnState))
    if existing:
        return existing[0][1]
    world.create_entity(TurnState())
    return list(world.get_component(TurnState))[0][1]


def get_or_create_score(world: World) -> Score:
    existing = list(world.get_component(Score))
    if existing:
        return existing[0][1]
    world.create_entity(Score())
    return list(world.get_component(Score))[0][1]


def get_or_create_level_progress(world: World) -> LevelProgress:
    existing = list(world.get_component(LevelProgress))
    if existing:
        return existing[0][1]
    world.create_entity(LevelProgress())
    return list(world.get_component(LevelProgress))[0][1]
