import pytest

from models.enums import LivenessStatus, ReadinessStatus
from services.health_signal import HealthSignal


@pytest.mark.asyncio
async def test_ready_when_connected(connection):
    await connection.connect()
    health = HealthSignal(connection, "1.2.3")

    assert health.readiness() is ReadinessStatus.READY
    assert health.readiness_report() == {"status": "READY", "redis": "CONNECTED"}


@pytest.mark.asyncio
async def test_liveness_ignores_store(connection, fake_server):
    fake_server.available = False
    await connection.connect()
    health = HealthSignal(connection, "1.2.3")

    assert health.liveness() is LivenessStatus.UP
    assert health.readiness() is ReadinessStatus.NOT_READY
    assert health.readiness_report() == {"status": "NOT READY", "redis": "DISCONNECTED"}


@pytest.mark.asyncio
async def test_readiness_flips_with_connection(connection, fake_server, until):
    await connection.connect()
    health = HealthSignal(connection, "1.0.0")

    fake_server.available = False
    assert await until(lambda: health.readiness() is ReadinessStatus.NOT_READY)
    assert health.liveness() is LivenessStatus.UP

    fake_server.available = True
    assert await until(lambda: health.readiness() is ReadinessStatus.READY)


@pytest.mark.asyncio
async def test_liveness_report(connection):
    report = HealthSignal(connection, "2.0.0").liveness_report()

    assert report["status"] == "UP"
    assert report["version"] == "2.0.0"
    assert report["timestamp"].endswith("Z")


@pytest.mark.asyncio
async def test_subscribed_signal_counts_readiness_flips(connection, fake_server, event_bus, until):
    health = HealthSignal(connection, "1.0.0")
    health.subscribe(event_bus)

    await connection.connect()
    assert health.readiness_transitions == 1
    assert health.readiness_changed_at is not None

    fake_server.available = False
    assert await until(lambda: health.readiness_transitions == 2)

    fake_server.available = True
    assert await until(lambda: health.readiness_transitions == 3)
    assert health.readiness() is ReadinessStatus.READY


@pytest.mark.asyncio
async def test_failed_attempts_are_not_readiness_flips(connection, fake_server, event_bus, until):
    health = HealthSignal(connection, "1.0.0")
    health.subscribe(event_bus)
    fake_server.available = False

    await connection.connect()
    assert await until(lambda: connection.stats().total_attempts >= 3)

    assert health.readiness_transitions == 0
    assert health.readiness_changed_at is None
