"""
Event system for the Task API

State-change events published by the store connection and the shutdown
coordinator. Subscribers observe; state is never mutated through the bus.
"""

from models.events.types import EventType
from models.events.base import Event
from models.events.sources import EventSource

from models.events.connection_events import ConnectionStateChangedEvent
from models.events.shutdown_events import (
    ShutdownRequestedEvent,
    ShutdownPhaseChangedEvent,
)

__all__ = [
    "EventType",
    "Event",
    "EventSource",

    "ConnectionStateChangedEvent",

    "ShutdownRequestedEvent",
    "ShutdownPhaseChangedEvent",
]
