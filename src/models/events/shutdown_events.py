from dataclasses import dataclass

from models.events.base import Event
from models.events.types import EventType
from models.events.sources import EventSource
from models.enums import ShutdownPhase


@dataclass(init=False)
class ShutdownRequestedEvent(Event):
    reason: str

    def __init__(self, reason: str):
        super().__init__(
            type=EventType.SHUTDOWN_REQUESTED,
            source=EventSource.SHUTDOWN_COORDINATOR,
        )
        self.reason = reason


@dataclass(init=False)
class ShutdownPhaseChangedEvent(Event):
    previous: ShutdownPhase
    current: ShutdownPhase

    def __init__(self, previous: ShutdownPhase, current: ShutdownPhase):
        super().__init__(
            type=EventType.SHUTDOWN_PHASE_CHANGED,
            source=EventSource.SHUTDOWN_COORDINATOR,
        )
        self.previous = previous
        self.current = current
