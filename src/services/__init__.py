"""Services layer"""

from .event_bus import EventBus
from .health_signal import HealthSignal
from .task_service import TaskService
from .service_container import ServiceContainer

__all__ = [
    "EventBus",
    "HealthSignal",
    "TaskService",
    "ServiceContainer",
]
