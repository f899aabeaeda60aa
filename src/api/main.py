"""
FastAPI Application Factory

Assembles the app:
- Routes (health probes, tasks, system introspection)
- Exception handlers ({"error": ...} responses)
- Dependency injection setup (service container)

The factory is shared by main_asyncio.py and the tests, which pass a
container wired to a fake Redis client.
"""

from fastapi import FastAPI
from typing import Optional

from api.routes import health, tasks, system
from api.middleware.error_handler import register_exception_handlers
from api.dependencies import set_service_container
from services.service_container import ServiceContainer
from utils.logger import get_logger
from models.enums import LogCategory

log = get_logger().for_category(LogCategory.API)


def create_app(
    services: Optional[ServiceContainer] = None,
    title: str = "Task API",
    description: str = "Task list backed by Redis, with liveness and readiness probes",
    docs_enabled: bool = True,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        services: Service container for the endpoints (may be set later
            with api.dependencies.set_service_container)
        title: API title (shown in docs)
        description: API description
        docs_enabled: Enable /docs and /redoc

    Returns:
        Configured FastAPI application ready to run
    """
    version = services.config.server.version if services else "1.0.0"

    app = FastAPI(
        title=title,
        description=description,
        version=version,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None
    )

    log.debug(f"Creating FastAPI app: {title} v{version}")

    if services is not None:
        set_service_container(services)

    register_exception_handlers(app)

    # Probes live at the root, orchestrators expect /health and /ready there
    app.include_router(health.router)
    app.include_router(tasks.router)
    app.include_router(system.router)

    log.debug("Routes registered: /health, /ready, /version, /tasks, /system")

    return app
