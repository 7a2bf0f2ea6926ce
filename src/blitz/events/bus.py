from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # Use weak=False to retain strong reference to bound methods so systems not kept in a variable still receive events.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# INPUT & INTERACTION
# ============================================================================
EVENT_TILE_CLICK = "tile_click"                        # payload: row, col
EVENT_TILE_SELECTED = "tile_selected"                  # payload: row, col
EVENT_TILE_DESELECTED = "tile_deselected"              # payload: reason=str, prev_row, prev_col
EVENT_TILE_SWAP_REQUEST = "tile_swap_request"          # payload: src=(r,c), dst=(r,c)
EVENT_TILE_ACTIVATE_REQUEST = "tile_activate_request"  # payload: row, col
EVENT_SHUFFLE_REQUEST = "shuffle_request"              # payload: None


# ============================================================================
# TILE & BOARD MECHANICS
# ============================================================================
EVENT_SWAP_REVERTED = "swap_reverted"              # payload: src=(r,c), dst=(r,c)
EVENT_MATCH_FOUND = "match_found"                  # payload: positions=[(r,c),...], groups=[MatchGroup], depth=int
EVENT_SPECIAL_CREATED = "special_created"          # payload: position=(r,c), kind=SpecialKind, reason=str
EVENT_SPECIAL_ACTIVATED = "special_activated"      # payload: position=(r,c), kind=SpecialKind, cells=[(r,c),...], step=int
EVENT_MATCH_CLEARED = "match_cleared"              # payload: positions=[(r,c),...], types=[(r,c,type_id),...]
EVENT_GRAVITY_APPLIED = "gravity_applied"          # payload: moves=[GravityMove]
EVENT_REFILL_COMPLETED = "refill_completed"        # payload: new_tiles=[(r,c),...]
EVENT_SCORE_CHANGED = "score_changed"              # payload: delta=int, total=int, multiplier=float, depth=int, reason=str, source=str
EVENT_CASCADE_STEP = "cascade_step"                # payload: depth=int, positions=[(r,c),...]
EVENT_CASCADE_COMPLETE = "cascade_complete"        # payload: depth=int
EVENT_BOARD_STALEMATE = "board_stalemate"          # payload: None
EVENT_BOARD_SHUFFLED = "board_shuffled"            # payload: positions=[(r,c),...], reinitialized=bool, reason=str
EVENT_BOARD_READY = "board_ready"                  # payload: rows=int, cols=int, type_count=int


# ============================================================================
# LEVEL FLOW
# ============================================================================
EVENT_LEVEL_STARTED = "level_started"              # payload: slug=str, goal=int
EVENT_LEVEL_GOAL_REACHED = "level_goal_reached"    # payload: slug=str, score=int, stars=int
