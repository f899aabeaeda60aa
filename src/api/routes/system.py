"""
System endpoints - connection state and background task introspection
"""

from fastapi import APIRouter, Depends
from typing import Dict, Any
from datetime import datetime, timezone
from lifecycle.task_registry import TaskRegistry
from api.dependencies import get_service_container
from services.service_container import ServiceContainer

router = APIRouter(prefix="/system", tags=["System"])


@router.get("/connection")
async def get_connection_stats(
    services: ServiceContainer = Depends(get_service_container)
) -> Dict[str, Any]:
    """
    Current Redis connection state.

    Returns:
        - state: DISCONNECTED / CONNECTING / CONNECTED / CLOSING / CLOSED
        - attempts: Reconnect attempts since the last successful connect
        - total_attempts: All attempts since startup
        - last_error: Most recent connection error, if any
        - connected_since: ISO timestamp of the current session, if connected
        - readiness_transitions: READY / NOT READY flips since startup
        - readiness_changed_at: ISO timestamp of the latest flip, if any
    """
    stats = services.connection.stats().to_dict()
    stats["readiness_transitions"] = services.health.readiness_transitions
    stats["readiness_changed_at"] = services.health.readiness_changed_at
    return stats


@router.get("/tasks/summary")
async def get_task_summary() -> Dict[str, Any]:
    """
    Get high-level task summary.

    Returns:
        - summary: Human-readable summary string
        - total: Total tasks tracked (all time)
        - active: Currently running tasks
        - failed: Tasks that ended with exceptions
        - cancelled: Tasks that were cancelled
    """
    registry = TaskRegistry.instance()
    return {
        "summary": registry.summary(),
        "total": len(registry.list_all()),
        "active": len(registry.active()),
        "failed": len(registry.failed()),
        "cancelled": len(registry.cancelled())
    }


@router.get("/tasks")
async def get_all_tasks() -> Dict[str, Any]:
    """
    Get detailed information about all tracked background tasks
    (connection supervisor, API server, shutdown timers).

    Returns:
        - count: Total number of tasks
        - tasks: List of task details including ID, category, description, status
    """
    registry = TaskRegistry.instance()
    now = datetime.now(timezone.utc).timestamp()

    tasks = []
    for r in registry.list_all():
        entry = {
            "id": r.info.id,
            "category": r.info.category.name,
            "description": r.info.description,
            "created_at": r.info.created_at,
            "status": r.status,
            "error": str(r.finished_with_error) if r.finished_with_error else None,
        }
        if r.status == "running":
            entry["running_for_seconds"] = round(now - r.info.created_timestamp, 2)
        tasks.append(entry)

    return {
        "count": len(tasks),
        "tasks": tasks
    }
