from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional

from blitz.events.bus import (
    EventBus,
    EVENT_SPECIAL_ACTIVATED,
    EVENT_SPECIAL_CREATED,
)


class TurnStatus(Enum):
    RESOLVED = auto()   # the board changed and was resolved to stability
    REVERTED = auto()   # swap produced nothing and was undone


@dataclass(slots=True)
class TurnEvent:
    kind: str
    payload: Dict[str, Any]


@dataclass(slots=True)
class TurnOutcome:
    """Result of a single player intent, handed back to the presentation layer."""

    status: TurnStatus
    score_delta: int = 0
    cascade_depth: int = 0
    source: Optional[str] = None  # swap, tap or shuffle
    events: List[TurnEvent] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return self.status is TurnStatus.RESOLVED

    def events_of(self, kind: str) -> List[TurnEvent]:
        return [event for event in self.events if event.kind == kind]

    @property
    def specials_created(self) -> List[TurnEvent]:
        return self.events_of(EVENT_SPECIAL_CREATED)

    @property
    def specials_activated(self) -> List[TurnEvent]:
        return self.events_of(EVENT_SPECIAL_ACTIVATED)


class TurnRecorder:
    """Emits events on the bus while keeping an ordered copy for the turn outcome."""

    def __init__(self, event_bus: EventBus):
        self.event_bus = event_bus
        self.events: List[TurnEvent] = []

    def emit(self, name: str, **payload) -> None:
        self.events.append(TurnEvent(kind=name, payload=payload))
        self.event_bus.emit(name, **payload)

    def outcome(
        self,
        status: TurnStatus,
        *,
        score_delta: int = 0,
        cascade_depth: int = 0,
        source: Optional[str] = None,
    ) -> TurnOutcome:
        return TurnOutcome(
            status=status,
            score_delta=score_delta,
            cascade_depth=cascade_depth,
            source=source,
            events=list(self.events),
        )
