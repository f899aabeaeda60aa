"""Task domain model"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC with millisecond precision and trailing Z (2024-05-01T12:00:00.123Z)."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Task:
    """
    A single to-do entry, stored as one JSON document per element of the
    store's `tasks` list.

    Tasks are append-only: never updated or deleted by the service, which is
    why a time-derived id is good enough.
    """

    id: int
    description: str
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        """Wire format (shared by the store and the HTTP API)."""
        return {
            "id": self.id,
            "description": self.description,
            "createdAt": self.created_at,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """
        Build from the wire format.

        Raises:
            ValueError: Document is not an object, misses a key or has a
                non-numeric id
        """
        if not isinstance(data, dict):
            raise ValueError(f"Task document must be an object, got {type(data).__name__}")
        try:
            return cls(
                id=int(data["id"]),
                description=str(data["description"]),
                created_at=str(data["createdAt"]),
            )
        except KeyError as e:
            raise ValueError(f"Task document missing key {e}") from e
        except TypeError as e:
            raise ValueError(f"Task document has an invalid id: {data['id']!r}") from e

    @classmethod
    def from_json(cls, raw: str) -> "Task":
        """Raises ValueError (json.JSONDecodeError is a subclass) on bad input."""
        return cls.from_dict(json.loads(raw))


class TaskIdGenerator:
    """
    Epoch-millisecond task ids, strictly increasing within this process.

    Two creations in the same millisecond get consecutive ids instead of the
    same one. Across processes ids remain best-effort unique.
    """

    def __init__(self, clock=time.time):
        self._clock = clock
        self._last_id = 0

    def next_id(self) -> int:
        candidate = int(self._clock() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return candidate
