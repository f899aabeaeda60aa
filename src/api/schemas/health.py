"""
Health schemas - liveness, readiness and version bodies
"""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """GET /health"""
    status: str = Field(description='Always "UP" while the process responds')
    version: str
    timestamp: str = Field(description="ISO-8601 UTC timestamp with milliseconds")


class ReadinessResponse(BaseModel):
    """GET /ready"""
    status: str = Field(description='"READY" or "NOT READY"')
    redis: str = Field(description='"CONNECTED" or "DISCONNECTED"')


class VersionResponse(BaseModel):
    """GET /version"""
    version: str
