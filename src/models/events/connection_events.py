from dataclasses import dataclass
from typing import Optional

from models.events.base import Event
from models.events.types import EventType
from models.events.sources import EventSource
from models.enums import ConnectionState


@dataclass(init=False)
class ConnectionStateChangedEvent(Event):
    previous: ConnectionState
    current: ConnectionState
    attempt: int
    error: Optional[str]

    def __init__(
        self,
        previous: ConnectionState,
        current: ConnectionState,
        attempt: int = 0,
        error: Optional[str] = None,
    ):
        super().__init__(
            type=EventType.CONNECTION_STATE_CHANGED,
            source=EventSource.STORE_CONNECTION,
        )
        self.previous = previous
        self.current = current
        self.attempt = attempt
        self.error = error
