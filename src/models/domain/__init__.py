"""Domain models"""

from models.domain.task import Task, TaskIdGenerator, format_timestamp

__all__ = [
    "Task",
    "TaskIdGenerator",
    "format_timestamp",
]
