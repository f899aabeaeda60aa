"""
Event bus: publishing, subscription, middleware and filtering.
"""

import pytest

from models.enums import ConnectionState, ShutdownPhase
from models.events import (
    ConnectionStateChangedEvent, ShutdownPhaseChangedEvent, ShutdownRequestedEvent, EventType
)
from services.event_bus import EventBus
from services.middleware import log_middleware


@pytest.mark.asyncio
async def test_basic_pub_sub():
    """Test basic publish/subscribe"""
    bus = EventBus()
    received = []

    async def handler(event):
        received.append(event)

    bus.subscribe(EventType.CONNECTION_STATE_CHANGED, handler)
    await bus.publish(ConnectionStateChangedEvent(ConnectionState.CONNECTING, ConnectionState.CONNECTED))

    assert len(received) == 1
    assert received[0].current is ConnectionState.CONNECTED


@pytest.mark.asyncio
async def test_filtering():
    """Test per-handler filtering"""
    bus = EventBus()
    drops = []

    bus.subscribe(
        EventType.CONNECTION_STATE_CHANGED,
        drops.append,
        filter_fn=lambda e: e.current is ConnectionState.DISCONNECTED
    )

    await bus.publish(ConnectionStateChangedEvent(ConnectionState.DISCONNECTED, ConnectionState.CONNECTING))
    await bus.publish(ConnectionStateChangedEvent(ConnectionState.CONNECTING, ConnectionState.DISCONNECTED, attempt=1, error="refused"))

    assert len(drops) == 1
    assert drops[0].error == "refused"


@pytest.mark.asyncio
async def test_middleware_blocking():
    """Middleware returning None stops the event"""
    bus = EventBus()
    received = []

    bus.add_middleware(lambda e: None if e.type is EventType.SHUTDOWN_REQUESTED else e)
    bus.subscribe(EventType.SHUTDOWN_REQUESTED, received.append)
    bus.subscribe(EventType.SHUTDOWN_PHASE_CHANGED, received.append)

    await bus.publish(ShutdownRequestedEvent("SIGTERM"))
    await bus.publish(ShutdownPhaseChangedEvent(ShutdownPhase.RUNNING, ShutdownPhase.DRAINING))

    assert [e.type for e in received] == [EventType.SHUTDOWN_PHASE_CHANGED]


@pytest.mark.asyncio
async def test_log_middleware_passes_events_through():
    bus = EventBus()
    received = []

    bus.add_middleware(log_middleware)
    bus.subscribe(EventType.SHUTDOWN_REQUESTED, received.append)

    event = ShutdownRequestedEvent("SIGINT")
    await bus.publish(event)

    assert received == [event]


@pytest.mark.asyncio
async def test_priority():
    """Test priority-based handler execution"""
    bus = EventBus()
    execution_order = []

    async def low_priority_handler(event):
        execution_order.append("low")

    async def high_priority_handler(event):
        execution_order.append("high")

    async def medium_priority_handler(event):
        execution_order.append("medium")

    bus.subscribe(EventType.SHUTDOWN_REQUESTED, low_priority_handler, priority=0)
    bus.subscribe(EventType.SHUTDOWN_REQUESTED, high_priority_handler, priority=100)
    bus.subscribe(EventType.SHUTDOWN_REQUESTED, medium_priority_handler, priority=50)

    await bus.publish(ShutdownRequestedEvent("SIGINT"))

    assert execution_order == ["high", "medium", "low"]


@pytest.mark.asyncio
async def test_failing_handler_does_not_stop_others():
    bus = EventBus()
    received = []

    def broken(event):
        raise RuntimeError("boom")

    bus.subscribe(EventType.SHUTDOWN_REQUESTED, broken, priority=10)
    bus.subscribe(EventType.SHUTDOWN_REQUESTED, received.append)

    await bus.publish(ShutdownRequestedEvent("SIGTERM"))

    assert len(received) == 1


def test_event_to_data_renders_enums_by_name():
    data = ConnectionStateChangedEvent(ConnectionState.CONNECTED, ConnectionState.DISCONNECTED, error="lost").to_data()

    assert data["previous"] == "CONNECTED"
    assert data["current"] == "DISCONNECTED"
    assert data["error"] == "lost"
