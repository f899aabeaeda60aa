from __future__ import annotations

import time
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict

from models.events.types import EventType
from models.events.sources import EventSource


@dataclass(init=False)
class Event:
    """
    Base event class.

    - type: EventType
    - source: EventSource
    - timestamp: auto (epoch seconds)
    """

    type: EventType
    source: EventSource
    timestamp: float = field(default_factory=time.time)

    def __init__(self, *, type: EventType, source: EventSource):
        self.type = type
        self.source = source
        self.timestamp = time.time()

    def to_data(self) -> Dict[str, Any]:
        """Event payload without metadata, enums rendered by name."""
        data = {}
        for k, v in self.__dict__.items():
            if k in ("type", "source", "timestamp"):
                continue
            data[k] = v.name if isinstance(v, Enum) else v
        return data
