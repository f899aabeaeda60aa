import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError, TimeoutError as RedisTimeoutError

from models.domain.task import Task, TaskIdGenerator
from services.task_service import TaskService, TASKS_KEY
from store import StoreUnavailableError, StoreOperationError


@pytest.mark.asyncio
async def test_create_then_list_preserves_order(connection):
    await connection.connect()
    service = TaskService(connection)

    created = [await service.create_task(d) for d in ("first", "second", "third")]
    listed = await service.list_tasks()

    assert listed == created
    assert [t.description for t in listed] == ["first", "second", "third"]


@pytest.mark.asyncio
async def test_stored_document_format(connection, fake_server):
    await connection.connect()
    clock = iter([1714564800.5]).__next__
    service = TaskService(connection, id_generator=TaskIdGenerator(clock=clock))

    task = await service.create_task("buy milk")

    raw = fake_server.lists[TASKS_KEY]
    assert len(raw) == 1
    doc = json.loads(raw[0])
    assert doc == {"id": 1714564800500, "description": "buy milk", "createdAt": task.created_at}
    assert task.created_at.endswith("Z")


@pytest.mark.asyncio
async def test_list_empty(connection):
    await connection.connect()
    assert await TaskService(connection).list_tasks() == []


@pytest.mark.asyncio
async def test_not_connected_raises_unavailable_without_store_call(connection, fake_server):
    fake_server.available = False
    await connection.connect()
    service = TaskService(connection)

    with pytest.raises(StoreUnavailableError):
        await service.list_tasks()
    with pytest.raises(StoreUnavailableError):
        await service.create_task("x")

    assert fake_server.calls == []


@pytest.mark.asyncio
async def test_command_error_becomes_operation_error(connection, fake_server):
    await connection.connect()
    fake_server.command_error = ResponseError("WRONGTYPE Operation against a key holding the wrong kind of value")

    with pytest.raises(StoreOperationError, match="WRONGTYPE"):
        await TaskService(connection).list_tasks()

    # A bad command is not a connectivity problem
    assert connection.is_connected()


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    RedisConnectionError("Connection reset by peer"),
    RedisTimeoutError("Timeout reading from socket"),
])
async def test_connection_failure_mid_command_is_unavailable(connection, fake_server, error):
    await connection.connect()
    fake_server.command_error = error
    service = TaskService(connection)

    with pytest.raises(StoreUnavailableError) as exc_info:
        await service.list_tasks()
    assert exc_info.value.__cause__ is error

    with pytest.raises(StoreUnavailableError):
        await service.create_task("x")


@pytest.mark.asyncio
async def test_corrupt_document_becomes_operation_error(connection, fake_server):
    await connection.connect()
    fake_server.lists[TASKS_KEY] = ['{"id": 1, "description": "ok", "createdAt": "x"}', "not json"]

    with pytest.raises(StoreOperationError):
        await TaskService(connection).list_tasks()


@pytest.mark.asyncio
async def test_document_with_null_id_becomes_operation_error(connection, fake_server):
    await connection.connect()
    fake_server.lists[TASKS_KEY] = ['{"id": null, "description": "x", "createdAt": "x"}']

    with pytest.raises(StoreOperationError, match="invalid id"):
        await TaskService(connection).list_tasks()


@pytest.mark.asyncio
async def test_custom_key(connection, fake_server):
    await connection.connect()
    service = TaskService(connection, key="other")
    await service.create_task("elsewhere")

    assert "other" in fake_server.lists
    assert TASKS_KEY not in fake_server.lists
    assert [t.description for t in await service.list_tasks()] == ["elsewhere"]


def test_task_from_dict_requires_all_keys():
    with pytest.raises(ValueError):
        Task.from_dict({"id": 1, "description": "no timestamp"})
    with pytest.raises(ValueError):
        Task.from_json("[1, 2]")
