"""
Task Endpoints - list and append tasks

Both endpoints depend on require_store_connected, so connectivity is
checked before the body and before any store command.
"""

from fastapi import APIRouter, Body, Depends, status
from typing import List, Optional

from api.dependencies import get_service_container, require_store_connected
from api.middleware.error_handler import (
    DatabaseUnavailableError, DescriptionRequiredError, StoreOperationFailedError
)
from api.schemas.error import ErrorResponse
from api.schemas.task import TaskCreateRequest, TaskResponse
from services.service_container import ServiceContainer
from store.errors import StoreOperationError, StoreUnavailableError
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.API)

router = APIRouter(
    prefix="/tasks",
    tags=["Tasks"],
    dependencies=[Depends(require_store_connected)],
    responses={
        503: {"model": ErrorResponse, "description": "Database unavailable"},
        500: {"model": ErrorResponse, "description": "Store operation failed"},
    },
)


@router.get(
    "",
    response_model=List[TaskResponse],
    response_model_by_alias=True,
    summary="List tasks",
    description="All tasks in insertion order (oldest first)"
)
async def list_tasks(
    services: ServiceContainer = Depends(get_service_container)
) -> List[TaskResponse]:
    try:
        tasks = await services.task_service.list_tasks()
    except StoreUnavailableError:
        raise DatabaseUnavailableError()
    except StoreOperationError as e:
        raise StoreOperationFailedError(str(e))

    return [TaskResponse.from_task(t) for t in tasks]


@router.post(
    "",
    response_model=TaskResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create task",
    description="Append a task to the end of the list",
    responses={400: {"model": ErrorResponse, "description": "Description is required / invalid body"}},
)
async def create_task(
    request: Optional[TaskCreateRequest] = Body(None),
    services: ServiceContainer = Depends(get_service_container)
) -> TaskResponse:
    """
    Create a task.

    A missing body, a missing description and an empty description all
    yield 400 "Description is required".
    """
    if request is None or not request.description:
        raise DescriptionRequiredError()

    try:
        task = await services.task_service.create_task(request.description)
    except StoreUnavailableError:
        raise DatabaseUnavailableError()
    except StoreOperationError as e:
        raise StoreOperationFailedError(str(e))

    log.info(f"Task created: {task.id}")
    return TaskResponse.from_task(task)
