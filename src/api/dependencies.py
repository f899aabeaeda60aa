"""
API Dependencies - Service container access for FastAPI endpoints

Pattern:
1. main_asyncio.py creates ServiceContainer during initialization
2. create_app(services) calls set_service_container()
3. API endpoints use get_service_container() dependency via Depends()

Example:
    @router.get("/tasks", dependencies=[Depends(require_store_connected)])
    async def list_tasks(services: ServiceContainer = Depends(get_service_container)):
        return await services.task_service.list_tasks()
"""

from typing import Optional
from fastapi import Depends
from api.middleware.error_handler import DomainError, DatabaseUnavailableError
from services.service_container import ServiceContainer


# Global service container (set during app creation)
_service_container: Optional[ServiceContainer] = None


def set_service_container(services: Optional[ServiceContainer]) -> None:
    """
    Store the service container for API access.

    Args:
        services: The ServiceContainer, or None to detach it
    """
    global _service_container
    _service_container = services


async def get_service_container() -> ServiceContainer:
    """
    FastAPI dependency for accessing service container.

    Raises:
        DomainError: 503 if services not initialized yet
    """
    if _service_container is None:
        raise DomainError(
            code="SERVICE_NOT_INITIALIZED",
            message="Service not initialized",
            status_code=503
        )
    return _service_container


async def require_store_connected(
    services: ServiceContainer = Depends(get_service_container)
) -> None:
    """
    Reject data requests while the store is disconnected.

    FastAPI solves dependencies before validating the body, so a request
    arriving during an outage gets 503 even when its body is invalid, and
    no store command is issued.

    Raises:
        DatabaseUnavailableError: 503
    """
    if not services.connection.is_connected():
        raise DatabaseUnavailableError()
