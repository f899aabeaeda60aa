"""
Task schemas - Pydantic models for task requests/responses
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from models.domain.task import Task


class TaskCreateRequest(BaseModel):
    """Request to append a task

    description is optional at the schema level so that a missing or empty
    value yields "Description is required" rather than a validation error.
    Non-string values are still rejected (pydantic v2 does not coerce to str).
    """
    description: Optional[str] = Field(
        None,
        description="What needs doing"
    )

    model_config = ConfigDict(
        json_schema_extra={"example": {"description": "buy milk"}}
    )


class TaskResponse(BaseModel):
    """A stored task"""
    id: int = Field(description="Epoch milliseconds at creation (unique within the process)")
    description: str
    created_at: str = Field(
        alias="createdAt",
        description="ISO-8601 UTC timestamp with milliseconds"
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": 1714564800123,
                "description": "buy milk",
                "createdAt": "2024-05-01T12:00:00.123Z"
            }
        }
    )

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(id=task.id, description=task.description, created_at=task.created_at)
