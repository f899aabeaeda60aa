"""
Lifecycle subsystem
-------------------

Exports the public API for:
- graceful shutdown (drain -> close store -> exit, with forced-exit deadline)
- background task tracking & introspection
- running Uvicorn under the shutdown coordinator
- shutdown handlers

External code should import from:
    from lifecycle import ShutdownCoordinator, TaskRegistry
    from lifecycle.handlers import StoreShutdownHandler
"""

from .shutdown_coordinator import ShutdownCoordinator, ShutdownState
from .task_registry import TaskRegistry, TaskCategory, TaskInfo, create_tracked_task
from .shutdown_protocol import IShutdownHandler
from .api_server_wrapper import APIServerWrapper
from . import handlers

__all__ = [
    "ShutdownCoordinator",
    "ShutdownState",
    "TaskRegistry",
    "TaskCategory",
    "TaskInfo",
    "create_tracked_task",
    "IShutdownHandler",
    "APIServerWrapper",
    "handlers",
]
