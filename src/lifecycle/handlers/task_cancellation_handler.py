from __future__ import annotations
import asyncio
from typing import Iterable, List, Optional

from lifecycle.shutdown_protocol import IShutdownHandler
from lifecycle.task_registry import TaskRegistry, TaskCategory
from models.enums import HandlerPhase
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SHUTDOWN)


class TaskCancellationHandler(IShutdownHandler):
    """
    Cancels tracked background tasks still running at the end of shutdown.

    Tasks in the SHUTDOWN category (the sequence itself and its deadline
    timer) and the task running this handler are never cancelled.

    Phase: CLEANUP, priority 40
    """

    shutdown_phase = HandlerPhase.CLEANUP

    def __init__(
        self,
        exclude_categories: Iterable[TaskCategory] = (TaskCategory.SHUTDOWN,),
        registry: Optional[TaskRegistry] = None,
    ):
        self.exclude_categories = set(exclude_categories)
        self._registry = registry

    @property
    def shutdown_priority(self) -> int:
        return 40

    async def shutdown(self) -> None:
        registry = self._registry or TaskRegistry.instance()
        current = asyncio.current_task()

        tasks: List[asyncio.Task] = [
            r.task for r in registry.active()
            if r.task is not current and r.info.category not in self.exclude_categories
        ]

        if not tasks:
            log.debug("No background tasks left to cancel")
            return

        log.info(f"Cancelling {len(tasks)} background task(s)...")
        for task in tasks:
            task.cancel(msg="shutdown")
            log.debug(f"Cancelled task: {task.get_name()}")

        await asyncio.gather(*tasks, return_exceptions=True)
        log.debug(registry.summary())
