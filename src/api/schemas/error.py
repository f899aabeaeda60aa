"""
Error schemas - Pydantic models for error responses
"""

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """API error response - every error uses this single-key shape"""
    error: str = Field(description="Human-readable error message")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"error": "Database unavailable"}
        }
    )
