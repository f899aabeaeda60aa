"""
ShutdownCoordinator: trigger handling, phase ordering, fault tolerance,
forced exit and critical task monitoring.
"""

import asyncio
import os
import signal

import pytest

from lifecycle.shutdown_coordinator import ShutdownCoordinator
from lifecycle.task_registry import create_tracked_task, TaskCategory
from models.enums import HandlerPhase, ShutdownPhase
from models.events import EventType
from services.event_bus import EventBus


class RecordingHandler:
    def __init__(self, name, log, phase=HandlerPhase.CLEANUP, priority=0, delay=0.0, error=None):
        self.name = name
        self.log = log
        self.shutdown_phase = phase
        self._priority = priority
        self.delay = delay
        self.error = error

    @property
    def shutdown_priority(self) -> int:
        return self._priority

    async def shutdown(self) -> None:
        self.log.append(self.name)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error


class ExitRecorder:
    def __init__(self):
        self.codes = []

    def __call__(self, code):
        self.codes.append(code)


@pytest.fixture
def exit_fn():
    return ExitRecorder()


@pytest.mark.asyncio
async def test_only_first_request_starts_shutdown(exit_fn):
    coordinator = ShutdownCoordinator(exit_fn=exit_fn)

    assert coordinator.request_shutdown("SIGTERM") is True
    assert coordinator.request_shutdown("SIGINT") is False

    assert coordinator.is_shutting_down
    assert coordinator.state.reason == "SIGTERM"
    assert coordinator.state.signal_received

    assert await coordinator.shutdown_all() == 0


@pytest.mark.asyncio
async def test_wait_for_shutdown_returns_on_request(exit_fn):
    coordinator = ShutdownCoordinator(exit_fn=exit_fn)

    waiter = asyncio.create_task(coordinator.wait_for_shutdown())
    await asyncio.sleep(0.05)
    assert not waiter.done()

    coordinator.request_shutdown("SIGTERM")
    await asyncio.wait_for(waiter, timeout=1.0)

    await coordinator.shutdown_all()


@pytest.mark.asyncio
async def test_sigterm_triggers_shutdown(exit_fn):
    coordinator = ShutdownCoordinator(exit_fn=exit_fn)
    loop = asyncio.get_running_loop()
    coordinator.setup_signal_handlers(loop)

    try:
        os.kill(os.getpid(), signal.SIGTERM)
        await asyncio.wait_for(coordinator.wait_for_shutdown(), timeout=2.0)
        assert coordinator.state.reason == "SIGTERM"

        # A second signal while shutting down is ignored
        os.kill(os.getpid(), signal.SIGINT)
        await asyncio.sleep(0.05)
        assert coordinator.state.reason == "SIGTERM"

        assert await coordinator.shutdown_all() == 0
    finally:
        loop.remove_signal_handler(signal.SIGTERM)
        loop.remove_signal_handler(signal.SIGINT)


@pytest.mark.asyncio
async def test_phases_run_in_order_then_priority(exit_fn):
    calls = []
    bus = EventBus()
    phases = []
    bus.subscribe(EventType.SHUTDOWN_PHASE_CHANGED, lambda e: phases.append(e.current))

    coordinator = ShutdownCoordinator(event_bus=bus, exit_fn=exit_fn)
    coordinator.register(RecordingHandler("cleanup", calls, HandlerPhase.CLEANUP, priority=100))
    coordinator.register(RecordingHandler("store", calls, HandlerPhase.CLOSE_STORE, priority=50))
    coordinator.register(RecordingHandler("drain-low", calls, HandlerPhase.DRAIN, priority=10))
    coordinator.register(RecordingHandler("drain-high", calls, HandlerPhase.DRAIN, priority=90))

    exit_code = await coordinator.shutdown_all()

    assert exit_code == 0
    assert calls == ["drain-high", "drain-low", "store", "cleanup"]
    assert phases == [ShutdownPhase.DRAINING, ShutdownPhase.CLOSING_STORE, ShutdownPhase.TERMINATED]
    assert coordinator.phase is ShutdownPhase.TERMINATED
    assert exit_fn.codes == []


@pytest.mark.asyncio
async def test_handler_errors_and_timeouts_do_not_block(exit_fn):
    calls = []
    coordinator = ShutdownCoordinator(timeout_per_handler=0.1, exit_fn=exit_fn)
    coordinator.register(RecordingHandler("raises", calls, HandlerPhase.DRAIN, error=RuntimeError("boom")))
    coordinator.register(RecordingHandler("hangs", calls, HandlerPhase.CLOSE_STORE, delay=5.0))
    coordinator.register(RecordingHandler("cleanup", calls, HandlerPhase.CLEANUP))

    exit_code = await coordinator.shutdown_all()

    assert exit_code == 0
    assert calls == ["raises", "hangs", "cleanup"]


@pytest.mark.asyncio
async def test_forced_exit_when_deadline_passes(exit_fn):
    calls = []
    coordinator = ShutdownCoordinator(drain_timeout=0.2, timeout_per_handler=5.0, exit_fn=exit_fn)
    coordinator.register(RecordingHandler("stuck", calls, HandlerPhase.DRAIN, delay=5.0))
    coordinator.register(RecordingHandler("store", calls, HandlerPhase.CLOSE_STORE))

    loop = asyncio.get_running_loop()
    started = loop.time()
    exit_code = await coordinator.shutdown_all()

    assert exit_code == 1
    assert exit_fn.codes == [1]
    assert coordinator.phase is ShutdownPhase.FORCED_EXIT
    assert loop.time() - started < 1.0
    assert calls == ["stuck"]


@pytest.mark.asyncio
async def test_register_rejects_incomplete_handler():
    coordinator = ShutdownCoordinator()
    with pytest.raises(ValueError):
        coordinator.register(object())


@pytest.mark.asyncio
async def test_get_handler(exit_fn):
    coordinator = ShutdownCoordinator(exit_fn=exit_fn)
    handler = RecordingHandler("x", [])
    coordinator.register(handler)

    assert coordinator.get_handler(RecordingHandler) is handler
    assert coordinator.get_handler(ExitRecorder) is None


# ============================================================================
# CRITICAL TASK MONITORING
# ============================================================================

@pytest.mark.asyncio
async def test_critical_task_failure_triggers_shutdown(exit_fn):
    coordinator = ShutdownCoordinator(exit_fn=exit_fn)

    async def failing_task():
        await asyncio.sleep(0.05)
        raise RuntimeError("Simulated critical task failure")

    critical_task = create_tracked_task(
        failing_task(),
        category=TaskCategory.API,
        description="Failing API task"
    )
    coordinator.monitor(critical_task)

    await asyncio.wait_for(coordinator.wait_for_shutdown(), timeout=2.0)

    assert coordinator.state.failure
    assert "Task failure" in coordinator.state.reason
    assert "Failing API task" in coordinator.state.reason

    assert await coordinator.shutdown_all() == 1
    assert exit_fn.codes == []


@pytest.mark.asyncio
async def test_running_critical_task_does_not_trigger_shutdown(exit_fn):
    coordinator = ShutdownCoordinator(exit_fn=exit_fn)

    async def dummy_task():
        while True:
            await asyncio.sleep(0.1)

    task = create_tracked_task(dummy_task(), category=TaskCategory.BACKGROUND, description="Dummy test task")
    coordinator.monitor(task)

    waiter = asyncio.create_task(coordinator.wait_for_shutdown())
    await asyncio.sleep(0.2)
    assert not waiter.done()

    coordinator.request_shutdown("SIGINT")
    await asyncio.wait_for(waiter, timeout=1.0)
    assert not coordinator.state.failure

    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    assert await coordinator.shutdown_all() == 0
