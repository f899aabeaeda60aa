"""Task Service - Data access for the append-only task list"""

from typing import List, Optional

from redis.exceptions import RedisError

from models.domain.task import Task, TaskIdGenerator, format_timestamp
from store.errors import StoreOperationError, StoreUnavailableError
from store.store_connection import CONNECTIVITY_ERRORS, StoreConnection
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.STORE)

TASKS_KEY = "tasks"


class TaskService:
    """
    Reads and appends tasks through the shared StoreConnection.

    Callers check connectivity first (the routes do it through a dependency);
    command() still raises StoreUnavailableError if the connection dropped
    in between. A connectivity error during the command itself is also
    StoreUnavailableError; only command and protocol errors become
    StoreOperationError.

    Concurrent creations are not serialized: each is an independent RPUSH.
    """

    def __init__(
        self,
        connection: StoreConnection,
        id_generator: Optional[TaskIdGenerator] = None,
        key: str = TASKS_KEY,
    ):
        self._connection = connection
        self._ids = id_generator or TaskIdGenerator()
        self._key = key

    async def list_tasks(self) -> List[Task]:
        """
        All tasks in insertion order (oldest first).

        Raises:
            StoreUnavailableError: Not connected, or the connection failed mid-command
            StoreOperationError: Command failed or a stored document is not a task
        """
        async with self._connection.command() as client:
            try:
                raw_tasks = await client.lrange(self._key, 0, -1)
            except CONNECTIVITY_ERRORS as e:
                raise StoreUnavailableError("Database unavailable") from e
            except RedisError as e:
                raise StoreOperationError(str(e)) from e

        try:
            return [Task.from_json(raw) for raw in raw_tasks]
        except ValueError as e:
            log.error("Corrupt task document in store", key=self._key, error=str(e))
            raise StoreOperationError(str(e)) from e

    async def create_task(self, description: str) -> Task:
        """
        Append a new task.

        Raises:
            StoreUnavailableError: Not connected, or the connection failed mid-command
            StoreOperationError: RPUSH failed
        """
        task = Task(
            id=self._ids.next_id(),
            description=description,
            created_at=format_timestamp(),
        )

        async with self._connection.command() as client:
            try:
                await client.rpush(self._key, task.to_json())
            except CONNECTIVITY_ERRORS as e:
                raise StoreUnavailableError("Database unavailable") from e
            except RedisError as e:
                raise StoreOperationError(str(e)) from e

        log.debug("Task created", id=task.id)
        return task
