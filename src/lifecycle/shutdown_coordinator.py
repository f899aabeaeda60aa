"""
Shutdown coordinator that orchestrates graceful shutdown of all components.

State machine:
    RUNNING -> DRAINING -> CLOSING_STORE -> TERMINATED
    any     -> FORCED_EXIT   (deadline timer fired first)

The graceful sequence and the deadline timer are two concurrently scheduled
tasks; whichever finishes first decides the exit path.
"""

from __future__ import annotations

import asyncio
import os
import signal
import sys
from dataclasses import dataclass
from typing import Callable, List, Optional, Set, TYPE_CHECKING

from lifecycle.task_registry import create_tracked_task, TaskCategory, TaskRegistry
from models.enums import HandlerPhase, ShutdownPhase
from models.events import ShutdownPhaseChangedEvent, ShutdownRequestedEvent
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from services.event_bus import EventBus

log = get_logger().for_category(LogCategory.SHUTDOWN)

EXIT_OK = 0
EXIT_FORCED = 1
EXIT_FAILURE = 1


def _hard_exit(code: int) -> None:
    """Terminate immediately, abandoning in-flight work."""
    sys.stdout.flush()
    sys.stderr.flush()
    os._exit(code)


@dataclass
class ShutdownState:
    """Created on the first termination request, mutated only by the sequence."""
    signal_received: bool
    reason: str
    drain_deadline: float            # event loop time
    exit_code: Optional[int] = None
    phase: ShutdownPhase = ShutdownPhase.RUNNING
    failure: bool = False            # Triggered by a critical task failure, not a signal


class ShutdownCoordinator:
    """
    Coordinates graceful shutdown of multiple components.

    Handlers are grouped by HandlerPhase and run DRAIN -> CLOSE_STORE ->
    CLEANUP; each is bounded by timeout_per_handler and its errors are
    logged, never propagated. The whole sequence is bounded by drain_timeout,
    counted from the moment the termination signal arrives.

    Example:
        coordinator = ShutdownCoordinator(drain_timeout=10.0)
        coordinator.register(APIServerShutdownHandler(api_wrapper))
        coordinator.register(StoreShutdownHandler(connection))
        coordinator.register(TaskCancellationHandler())

        coordinator.setup_signal_handlers(loop)
        await coordinator.wait_for_shutdown()
        exit_code = await coordinator.shutdown_all()
    """

    def __init__(
        self,
        drain_timeout: float = 10.0,
        timeout_per_handler: float = 8.0,
        event_bus: Optional[EventBus] = None,
        exit_fn: Optional[Callable[[int], None]] = None,
    ):
        """
        Initialize shutdown coordinator.

        Args:
            drain_timeout: Signal-to-forced-exit bound (seconds)
            timeout_per_handler: Timeout for each individual handler (seconds)
            event_bus: Optional bus for ShutdownPhaseChangedEvent
            exit_fn: Called with the exit code on forced exit (default: os._exit)
        """
        self._handlers: List = []
        self._drain_timeout = drain_timeout
        self._timeout_per_handler = timeout_per_handler
        self._event_bus = event_bus
        self._exit_fn = exit_fn or _hard_exit

        self._shutdown_event = asyncio.Event()
        self._state: Optional[ShutdownState] = None
        self._deadline_task: Optional[asyncio.Task] = None
        self._sequence_task: Optional[asyncio.Task] = None
        self._critical_tasks: Set[asyncio.Task] = set()

    # ----------------------------------------------------------------------
    # REGISTRATION
    # ----------------------------------------------------------------------
    def register(self, handler) -> None:
        """
        Register a shutdown handler.

        Handler must have:
        - shutdown_priority property (int)
        - async shutdown() method
        and may have shutdown_phase (default: CLEANUP).
        """
        if not hasattr(handler, "shutdown_priority"):
            raise ValueError(f"Handler {handler} missing shutdown_priority property")
        if not hasattr(handler, "shutdown"):
            raise ValueError(f"Handler {handler} missing shutdown() method")

        self._handlers.append(handler)
        log.debug(f"Registered shutdown handler: {handler.__class__.__name__}")

    def monitor(self, task: asyncio.Task) -> None:
        """Treat task as critical: if it ends before shutdown, shutdown starts."""
        self._critical_tasks.add(task)

    def setup_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """
        Install OS signal handlers for graceful shutdown (SIGINT, SIGTERM).

        Only the first signal starts the sequence; later ones are ignored.
        """
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: self.request_shutdown(s.name))

        log.info("Signal handlers installed (SIGINT, SIGTERM)")

    # ----------------------------------------------------------------------
    # STATE
    # ----------------------------------------------------------------------
    @property
    def state(self) -> Optional[ShutdownState]:
        return self._state

    @property
    def phase(self) -> ShutdownPhase:
        return self._state.phase if self._state else ShutdownPhase.RUNNING

    @property
    def is_shutting_down(self) -> bool:
        return self._state is not None

    def get_handler(self, handler_type: type):
        """Registered handler of the given type, or None."""
        for handler in self._handlers:
            if isinstance(handler, handler_type):
                return handler
        return None

    # ----------------------------------------------------------------------
    # TRIGGER
    # ----------------------------------------------------------------------
    def request_shutdown(self, reason: str, failure: bool = False) -> bool:
        """
        Start the shutdown sequence (first call only).

        Creates the ShutdownState, arms the forced-exit deadline timer and
        wakes wait_for_shutdown().

        Returns:
            True if this call started the sequence, False if it was ignored
        """
        if self._state is not None:
            log.warn(f"{reason} received while shutting down → ignored")
            return False

        loop = asyncio.get_running_loop()
        self._state = ShutdownState(
            signal_received=not failure,
            reason=reason,
            drain_deadline=loop.time() + self._drain_timeout,
            failure=failure,
        )
        log.info(f"{reason} received → starting graceful shutdown (deadline {self._drain_timeout}s)")

        self._deadline_task = create_tracked_task(
            self._deadline_timer(),
            category=TaskCategory.SHUTDOWN,
            description="Shutdown deadline timer",
        )
        self._shutdown_event.set()
        return True

    async def wait_for_shutdown(self) -> None:
        """
        Wait for a termination signal or the end of a critical task.

        A critical task (see monitor()) ending before shutdown is treated as
        a failure: shutdown starts and the final exit code is non-zero.
        """
        while not self._shutdown_event.is_set():
            shutdown_waiter = asyncio.create_task(self._shutdown_event.wait())
            wait_set = {shutdown_waiter, *self._critical_tasks}
            try:
                done, _ = await asyncio.wait(wait_set, return_when=asyncio.FIRST_COMPLETED)
            finally:
                # Only the waiter is ours to cancel, critical tasks keep running
                if not shutdown_waiter.done():
                    shutdown_waiter.cancel()

            for finished in done - {shutdown_waiter}:
                self._critical_tasks.discard(finished)
                self.request_shutdown(f"Task failure: {self._describe_task(finished)}", failure=True)

        log.debug("Shutdown triggered")

    # ----------------------------------------------------------------------
    # SEQUENCE
    # ----------------------------------------------------------------------
    async def shutdown_all(self) -> int:
        """
        Run the graceful sequence raced against the deadline timer.

        Returns:
            Exit code: 0 after TERMINATED, non-zero after FORCED_EXIT or a
            critical task failure. On FORCED_EXIT exit_fn is invoked first.
        """
        if self._state is None:
            self.request_shutdown("shutdown_all() called")

        state = self._state
        log.info("🛑 Initiating graceful shutdown sequence...")
        log.info(f"   Reason: {state.reason}")

        if self._event_bus is not None:
            await self._event_bus.publish(ShutdownRequestedEvent(state.reason))

        self._sequence_task = create_tracked_task(
            self._run_sequence(),
            category=TaskCategory.SHUTDOWN,
            description="Graceful shutdown sequence",
        )

        await asyncio.wait(
            {self._sequence_task, self._deadline_task},
            return_when=asyncio.FIRST_COMPLETED,
        )

        if state.phase is ShutdownPhase.TERMINATED:
            self._deadline_task.cancel()
            log.info(f"✓ Shutdown sequence complete (exit code {state.exit_code})")
            return state.exit_code

        # Deadline won; the timer already invoked exit_fn
        if not self._sequence_task.done():
            self._sequence_task.cancel()
        return state.exit_code

    async def _run_sequence(self) -> None:
        state = self._state
        await self._set_phase(ShutdownPhase.DRAINING)
        await self._run_phase(HandlerPhase.DRAIN)

        await self._set_phase(ShutdownPhase.CLOSING_STORE)
        await self._run_phase(HandlerPhase.CLOSE_STORE)
        await self._run_phase(HandlerPhase.CLEANUP)

        if state.phase is ShutdownPhase.FORCED_EXIT:
            return
        state.exit_code = EXIT_FAILURE if state.failure else EXIT_OK
        await self._set_phase(ShutdownPhase.TERMINATED)

    async def _run_phase(self, phase: HandlerPhase) -> None:
        """Run one phase's handlers by priority; errors and timeouts are logged, never raised."""
        handlers = sorted(
            (h for h in self._handlers if getattr(h, "shutdown_phase", HandlerPhase.CLEANUP) is phase),
            key=lambda h: h.shutdown_priority,
            reverse=True,
        )

        for handler in handlers:
            handler_name = handler.__class__.__name__
            try:
                log.debug(f"Shutting down {handler_name} ({phase.name}, priority={handler.shutdown_priority})...")
                await asyncio.wait_for(handler.shutdown(), timeout=self._timeout_per_handler)
                log.debug(f"✓ {handler_name} shutdown complete")

            except asyncio.TimeoutError:
                log.error(f"⚠️  {handler_name} shutdown timeout ({self._timeout_per_handler}s)")

            except asyncio.CancelledError:
                log.debug(f"{handler_name} shutdown was cancelled")
                raise

            except Exception as e:
                log.error(f"❌ Error shutting down {handler_name}: {e}", exc_info=True)

    async def _deadline_timer(self) -> None:
        """Force the exit if TERMINATED is not reached by the drain deadline."""
        state = self._state
        loop = asyncio.get_running_loop()
        await asyncio.sleep(max(0.0, state.drain_deadline - loop.time()))

        if state.phase is ShutdownPhase.TERMINATED:
            return

        log.error(f"Forcing exit after {self._drain_timeout}s timeout (stuck in {state.phase.name})")
        state.exit_code = EXIT_FORCED
        await self._set_phase(ShutdownPhase.FORCED_EXIT)
        self._exit_fn(EXIT_FORCED)

    async def _set_phase(self, new: ShutdownPhase) -> None:
        state = self._state
        previous = state.phase
        if previous is new or previous in (ShutdownPhase.TERMINATED, ShutdownPhase.FORCED_EXIT):
            return
        state.phase = new
        log.debug(f"Shutdown phase {previous.name} → {new.name}")

        if self._event_bus is not None:
            await self._event_bus.publish(ShutdownPhaseChangedEvent(previous, new))

    @staticmethod
    def _describe_task(task: asyncio.Task) -> str:
        record = TaskRegistry.instance().get_record(task)
        name = record.info.description if record else task.get_name()
        if task.cancelled():
            return f"{name} (cancelled)"
        exc = task.exception()
        return f"{name} ({exc!r})" if exc else f"{name} (exited)"
