"""
Shared fixtures: an in-memory Redis stand-in and a fast-retry StoreConnection.

FakeRedisServer plays the server (data + availability); every client the
StoreConnection creates through client_factory talks to the same server, so
a test can take Redis "down" and bring it back.
"""

import asyncio
import contextlib

import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError

from api.dependencies import set_service_container
from lifecycle.task_registry import TaskRegistry
from models.config import AppConfig, RedisConfig
from services import EventBus, HealthSignal, ServiceContainer, TaskService
from store import StoreConnection, RetryPolicy, StoreCloseError


class FakeRedisServer:
    def __init__(self):
        self.lists = {}
        self.available = True
        self.command_error = None     # Exception raised by data commands when set
        self.quit_error = None        # Exception raised by QUIT when set
        self.command_delay = 0.0      # Seconds each data command takes
        self.calls = []
        self.clients = []

    def client(self, config=None) -> "FakeRedis":
        c = FakeRedis(self)
        self.clients.append(c)
        return c


class FakeRedis:
    """Implements the subset of redis.asyncio.Redis the service uses."""

    def __init__(self, server: FakeRedisServer):
        self.server = server
        self.closed = False
        self.quit_called = False

    def _check(self):
        if not self.server.available or self.closed:
            raise RedisConnectionError("Connection refused")

    async def ping(self):
        self._check()
        return True

    async def lrange(self, key, start, end):
        self.server.calls.append(("lrange", key, start, end))
        await asyncio.sleep(self.server.command_delay)
        self._check()
        if self.server.command_error is not None:
            raise self.server.command_error
        items = self.server.lists.get(key, [])
        return list(items[start:] if end == -1 else items[start:end + 1])

    async def rpush(self, key, *values):
        self.server.calls.append(("rpush", key) + values)
        await asyncio.sleep(self.server.command_delay)
        self._check()
        if self.server.command_error is not None:
            raise self.server.command_error
        self.server.lists.setdefault(key, []).extend(values)
        return len(self.server.lists[key])

    async def quit(self):
        self.quit_called = True
        if self.server.quit_error is not None:
            raise self.server.quit_error
        return True

    async def aclose(self):
        self.closed = True


async def wait_until(predicate, timeout: float = 2.0, interval: float = 0.01) -> bool:
    """Poll predicate until it is true or timeout expires."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(interval)
    return predicate()


FAST_RETRY = RetryPolicy(delay=0.01, connect_timeout=0.2, check_interval=0.02)


@pytest.fixture(autouse=True)
def clean_registry():
    TaskRegistry.reset()
    yield
    TaskRegistry.reset()
    set_service_container(None)


@pytest.fixture
def fake_server():
    return FakeRedisServer()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest_asyncio.fixture
async def connection(fake_server, event_bus):
    conn = StoreConnection(
        RedisConfig(),
        retry_policy=FAST_RETRY,
        event_bus=event_bus,
        client_factory=fake_server.client,
    )
    yield conn
    with contextlib.suppress(StoreCloseError):
        await conn.close(timeout=0.5)


@pytest.fixture
def services(connection, event_bus):
    config = AppConfig()
    services = ServiceContainer(
        config=config,
        connection=connection,
        task_service=TaskService(connection),
        health=HealthSignal(connection, config.server.version),
        event_bus=event_bus,
    )
    services.health.subscribe(event_bus)
    return services


@pytest.fixture
def until():
    """The wait_until helper, as a fixture for test modules in subdirectories."""
    return wait_until
