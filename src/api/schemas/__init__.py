"""API schemas - Pydantic request/response models"""

from .error import ErrorResponse
from .health import HealthResponse, ReadinessResponse, VersionResponse
from .task import TaskCreateRequest, TaskResponse

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "ReadinessResponse",
    "VersionResponse",
    "TaskCreateRequest",
    "TaskResponse",
]
