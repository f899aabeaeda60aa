"""
Health Endpoints - probes for the external orchestrator

/health (liveness) never depends on the store; /ready (readiness) answers
503 while the store is disconnected.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from api.dependencies import get_service_container
from api.schemas.health import HealthResponse, ReadinessResponse, VersionResponse
from models.enums import ReadinessStatus
from services.service_container import ServiceContainer

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness probe",
)
async def health(services: ServiceContainer = Depends(get_service_container)):
    return services.health.liveness_report()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    responses={503: {"model": ReadinessResponse, "description": "Store disconnected"}},
)
async def ready(services: ServiceContainer = Depends(get_service_container)):
    report = services.health.readiness_report()
    code = (
        status.HTTP_200_OK
        if report["status"] == ReadinessStatus.READY.value
        else status.HTTP_503_SERVICE_UNAVAILABLE
    )
    return JSONResponse(status_code=code, content=report)


@router.get(
    "/version",
    response_model=VersionResponse,
    summary="Service version",
)
async def version(services: ServiceContainer = Depends(get_service_container)):
    return {"version": services.health.version}
