from .api_server_shutdown_handler import APIServerShutdownHandler
from .store_shutdown_handler import StoreShutdownHandler
from .task_cancellation_handler import TaskCancellationHandler

__all__ = [
    "APIServerShutdownHandler",
    "StoreShutdownHandler",
    "TaskCancellationHandler",
]
