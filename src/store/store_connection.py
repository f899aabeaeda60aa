"""
Store connection - process-wide Redis connection with a supervisor loop

The supervisor loop is the only writer of the connection state (close()
writes only after stopping it). Readers call is_connected(), which never
performs I/O.

Lifecycle:
    DISCONNECTED -> CONNECTING -> CONNECTED -> (drop) -> DISCONNECTED -> ...
    any -> CLOSING -> CLOSED          (close())
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable, Optional, TYPE_CHECKING

from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from lifecycle.task_registry import create_tracked_task, TaskCategory
from models.config import RedisConfig
from models.enums import ConnectionState
from models.events import ConnectionStateChangedEvent
from store.errors import StoreCloseError, StoreUnavailableError
from store.retry_policy import RetryPolicy
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from services.event_bus import EventBus

log = get_logger().for_category(LogCategory.STORE)

# Errors that mean "the connection is gone", as opposed to a bad command
CONNECTIVITY_ERRORS = (RedisConnectionError, RedisTimeoutError, asyncio.TimeoutError, OSError)


def create_redis_client(config: RedisConfig) -> Redis:
    """
    Default client factory.

    redis-py's own retries are disabled: reconnection is owned by the
    supervisor loop, so a failed command or ping must fail fast. The same
    timeout bounds connecting and every socket read, so a command on a dead
    socket surfaces as a TimeoutError instead of hanging a request.
    """
    return Redis(
        host=config.host,
        port=config.port,
        password=config.password,
        socket_connect_timeout=config.connect_timeout,
        socket_timeout=config.connect_timeout,
        retry=Retry(NoBackoff(), 0),
        retry_on_timeout=False,
        health_check_interval=0,
        decode_responses=True,
    )


def _is_connectivity_error(exc: BaseException) -> bool:
    """Connectivity errors, also when wrapped (raise StoreOperationError(...) from e)."""
    return isinstance(exc, CONNECTIVITY_ERRORS) or isinstance(exc.__cause__, CONNECTIVITY_ERRORS)


def _describe(exc: BaseException) -> str:
    text = str(exc)
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


@dataclass(frozen=True)
class ConnectionStats:
    """Observability snapshot (attempt counters never affect retry policy)."""
    state: ConnectionState
    attempts: int              # Failed attempts since the last successful connect
    total_attempts: int
    last_error: Optional[str]
    connected_since: Optional[str]

    def to_dict(self) -> dict:
        return {
            "state": self.state.name,
            "attempts": self.attempts,
            "total_attempts": self.total_attempts,
            "last_error": self.last_error,
            "connected_since": self.connected_since,
        }


class StoreConnection:
    """
    Owns the single logical connection to Redis.

    - connect(): starts the supervisor loop, returns after the first attempt
    - is_connected(): O(1) read of the latest published state
    - command(): async context manager yielding the client for one operation
    - close(): drains in-flight operations, QUITs, releases the client

    Example:
        connection = StoreConnection(config.redis, RetryPolicy.from_config(config.redis), event_bus)
        await connection.connect()

        if connection.is_connected():
            async with connection.command() as client:
                await client.rpush("tasks", payload)

        await connection.close()
    """

    def __init__(
        self,
        config: RedisConfig,
        retry_policy: Optional[RetryPolicy] = None,
        event_bus: Optional[EventBus] = None,
        client_factory: Optional[Callable[[RedisConfig], Any]] = None,
    ):
        self._config = config
        self._policy = retry_policy or RetryPolicy.from_config(config)
        self._event_bus = event_bus
        self._client_factory = client_factory or create_redis_client

        self._state = ConnectionState.DISCONNECTED
        self._client: Optional[Any] = None
        self._supervisor: Optional[asyncio.Task] = None
        self._closing = False

        # Supervisor signals
        self._first_attempt_done = asyncio.Event()
        self._drop_reported = asyncio.Event()

        # In-flight command accounting for close()
        self._in_flight = 0
        self._idle = asyncio.Event()
        self._idle.set()

        # Observability only
        self._attempts = 0
        self._total_attempts = 0
        self._last_error: Optional[str] = None
        self._connected_since: Optional[str] = None

    # ----------------------------------------------------------------------
    # READ SIDE
    # ----------------------------------------------------------------------
    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._policy

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def supervisor_task(self) -> Optional[asyncio.Task]:
        return self._supervisor

    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    def stats(self) -> ConnectionStats:
        return ConnectionStats(
            state=self._state,
            attempts=self._attempts,
            total_attempts=self._total_attempts,
            last_error=self._last_error,
            connected_since=self._connected_since,
        )

    # ----------------------------------------------------------------------
    # PUBLIC API
    # ----------------------------------------------------------------------
    async def connect(self) -> bool:
        """
        Start the supervisor loop and wait for its first attempt.

        Never raises on connection failure: the loop keeps retrying and the
        process stays able to answer liveness probes.

        Returns:
            True if the first attempt connected
        """
        if self._closing or self._state in (ConnectionState.CLOSING, ConnectionState.CLOSED):
            raise RuntimeError("StoreConnection has been closed")

        if self._supervisor is None or self._supervisor.done():
            self._first_attempt_done.clear()
            self._supervisor = create_tracked_task(
                self._supervise(),
                category=TaskCategory.STORE,
                description="Redis connection supervisor",
            )

        try:
            await asyncio.wait_for(
                self._first_attempt_done.wait(),
                timeout=self._policy.connect_timeout + 1.0,
            )
        except asyncio.TimeoutError:
            log.warn("Initial Redis connection attempt still pending; retry loop continues")

        if not self.is_connected():
            log.error(
                "Initial Redis connection failed (the retry loop takes over from here)",
                target=f"{self._config.host}:{self._config.port}",
                error=self._last_error,
            )
        return self.is_connected()

    def report_failure(self, exc: BaseException) -> None:
        """
        Tell the supervisor a command hit a connectivity error.

        Non-blocking; the supervisor verifies with a ping and performs the
        state transition itself.
        """
        if self._state is ConnectionState.CONNECTED:
            log.debug("Connectivity failure reported by caller", error=_describe(exc))
            self._drop_reported.set()

    @asynccontextmanager
    async def command(self) -> AsyncIterator[Any]:
        """
        Yield the live client for one store operation.

        Raises:
            StoreUnavailableError: Not connected (checked before any I/O)
        """
        client = self._client
        if self._state is not ConnectionState.CONNECTED or client is None:
            raise StoreUnavailableError("Database unavailable")

        self._in_flight += 1
        self._idle.clear()
        try:
            yield client
        except Exception as e:
            if _is_connectivity_error(e):
                self.report_failure(e)
            raise
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._idle.set()

    async def close(self, timeout: float = 5.0) -> None:
        """
        Gracefully close the connection.

        Stops the supervisor, waits (bounded) for commands issued before the
        call, then QUITs and releases the client. Idempotent.

        Raises:
            StoreCloseError: Redis did not acknowledge the QUIT in time.
                The connection is CLOSED regardless.
        """
        if self._state in (ConnectionState.CLOSING, ConnectionState.CLOSED):
            log.debug(f"close() ignored, already {self._state.name}")
            return

        self._closing = True
        await self._stop_supervisor(timeout)
        client = self._client
        await self._set_state(ConnectionState.CLOSING)

        try:
            if self._in_flight:
                log.info(f"Waiting for {self._in_flight} in-flight Redis command(s)...")
                try:
                    await asyncio.wait_for(self._idle.wait(), timeout=timeout)
                except asyncio.TimeoutError:
                    log.warn(f"In-flight Redis commands still pending after {timeout}s")

            if client is not None:
                try:
                    await asyncio.wait_for(self._quit(client), timeout=timeout)
                except Exception as e:
                    raise StoreCloseError(f"Redis did not acknowledge close: {_describe(e)}") from e
                log.info("Redis connection closed")
        finally:
            self._client = None
            self._connected_since = None
            await self._set_state(ConnectionState.CLOSED)

    # ----------------------------------------------------------------------
    # SUPERVISOR LOOP
    # ----------------------------------------------------------------------
    async def _supervise(self) -> None:
        """Connect, watch, and reconnect until close() stops the loop."""
        try:
            while not self._closing:
                connected = await self._attempt()
                self._first_attempt_done.set()
                if connected:
                    await self._watch_connection()
                if self._closing:
                    break
                await asyncio.sleep(self._policy.next_delay(self._attempts))
        except asyncio.CancelledError:
            log.debug("Redis supervisor loop cancelled")
            raise
        log.debug("Redis supervisor loop stopped")

    async def _attempt(self) -> bool:
        """One connection attempt, bounded by connect_timeout."""
        self._total_attempts += 1
        if self._total_attempts > 1:
            log.info(f"Reconnect attempt #{self._attempts + 1}")

        await self._set_state(ConnectionState.CONNECTING)
        client = self._client_factory(self._config)
        try:
            await asyncio.wait_for(client.ping(), timeout=self._policy.connect_timeout)
        except asyncio.CancelledError:
            await self._dispose(client)
            raise
        except Exception as e:
            self._attempts += 1
            self._last_error = _describe(e)
            await self._dispose(client)
            log.error("Redis error", error=self._last_error)
            await self._set_state(ConnectionState.DISCONNECTED, error=self._last_error)
            return False

        self._client = client
        self._attempts = 0
        self._connected_since = datetime.now(timezone.utc).isoformat()
        self._drop_reported.clear()
        await self._set_state(ConnectionState.CONNECTED)
        log.info("Connected to Redis", target=f"{self._config.host}:{self._config.port}")
        return True

    async def _watch_connection(self) -> None:
        """
        Ping periodically (or on a reported failure); return once the
        connection is lost or close() has started.

        A cancel from close() can be absorbed by wait_for when a reported
        failure lands in the same loop iteration, so _closing is checked
        after every wake-up.
        """
        while not self._closing:
            try:
                await asyncio.wait_for(
                    self._drop_reported.wait(),
                    timeout=self._policy.liveness_interval,
                )
            except asyncio.TimeoutError:
                pass
            if self._closing:
                return
            self._drop_reported.clear()

            try:
                await asyncio.wait_for(self._client.ping(), timeout=self._policy.connect_timeout)
                continue
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._last_error = _describe(e)

            log.warn("Redis connection lost, reconnecting...", error=self._last_error)
            client, self._client = self._client, None
            self._connected_since = None
            await self._set_state(ConnectionState.DISCONNECTED, error=self._last_error)
            await self._dispose(client)
            return

    async def _stop_supervisor(self, timeout: float) -> None:
        """
        Cancel the supervisor and wait (bounded) for it to finish.

        asyncio.wait() never raises the supervisor's CancelledError, so a
        CancelledError here is always the caller's own and propagates.
        """
        task, self._supervisor = self._supervisor, None
        if task is None or task.done():
            return
        task.cancel()
        _, pending = await asyncio.wait({task}, timeout=timeout)
        if pending:
            log.warn(f"Redis supervisor still running after {timeout}s, closing anyway")

    # ----------------------------------------------------------------------
    # INTERNAL
    # ----------------------------------------------------------------------
    async def _set_state(self, new: ConnectionState, error: Optional[str] = None) -> None:
        previous = self._state
        if previous is new:
            return
        self._state = new
        log.debug(f"State {previous.name} → {new.name}")

        if self._event_bus is not None:
            await self._event_bus.publish(
                ConnectionStateChangedEvent(previous, new, attempt=self._attempts, error=error)
            )

    @staticmethod
    async def _quit(client: Any) -> None:
        try:
            await client.quit()
        finally:
            await client.aclose()

    @staticmethod
    async def _dispose(client: Any) -> None:
        """Release a client that is no longer usable (errors are expected here)."""
        try:
            await client.aclose()
        except Exception as e:
            log.debug("Error releasing Redis client", error=_describe(e))
