"""
Health Signal - liveness and readiness for external probes

Liveness never looks at the store: a Redis outage must not make the
orchestrator restart this process. Readiness mirrors the store connection
with no debounce, so it may flip any number of times.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional, TYPE_CHECKING

from models.domain.task import format_timestamp
from models.enums import ConnectionState, LivenessStatus, ReadinessStatus
from models.events import ConnectionStateChangedEvent, EventType
from store.store_connection import StoreConnection
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from services.event_bus import EventBus

log = get_logger().for_category(LogCategory.HEALTH)


def _flips_readiness(event: ConnectionStateChangedEvent) -> bool:
    return (event.previous is ConnectionState.CONNECTED) != (event.current is ConnectionState.CONNECTED)


class HealthSignal:
    """
    Pure reads of process / connection state.

    When subscribed to the event bus it also logs every readiness flip and
    counts them for /system/connection. readiness() never depends on that
    bookkeeping.
    """

    def __init__(self, connection: StoreConnection, version: str):
        self._connection = connection
        self._version = version

        self._readiness_transitions = 0
        self._readiness_changed_at: Optional[str] = None

    @property
    def version(self) -> str:
        return self._version

    @property
    def readiness_transitions(self) -> int:
        return self._readiness_transitions

    @property
    def readiness_changed_at(self) -> Optional[str]:
        return self._readiness_changed_at

    def subscribe(self, event_bus: EventBus) -> None:
        event_bus.subscribe(
            EventType.CONNECTION_STATE_CHANGED,
            self._on_connection_state_changed,
            filter_fn=_flips_readiness,
        )

    def _on_connection_state_changed(self, event: ConnectionStateChangedEvent) -> None:
        self._readiness_transitions += 1
        self._readiness_changed_at = format_timestamp()

        if event.current is ConnectionState.CONNECTED:
            log.info("Readiness changed: READY")
        else:
            log.warn(
                "Readiness changed: NOT READY",
                redis=event.current.name,
                error=event.error,
            )

    def liveness(self) -> LivenessStatus:
        return LivenessStatus.UP

    def readiness(self) -> ReadinessStatus:
        if self._connection.is_connected():
            return ReadinessStatus.READY
        return ReadinessStatus.NOT_READY

    def liveness_report(self) -> Dict[str, Any]:
        """Body of GET /health."""
        return {
            "status": self.liveness().value,
            "version": self._version,
            "timestamp": format_timestamp(datetime.now(timezone.utc)),
        }

    def readiness_report(self) -> Dict[str, Any]:
        """Body of GET /ready (status code is decided by the route)."""
        readiness = self.readiness()
        return {
            "status": readiness.value,
            "redis": "CONNECTED" if readiness is ReadinessStatus.READY else "DISCONNECTED",
        }
