"""Service Container - Dependency injection container for all core services"""

from dataclasses import dataclass

from models.config import AppConfig
from services.event_bus import EventBus
from services.health_signal import HealthSignal
from services.task_service import TaskService
from store.store_connection import StoreConnection


@dataclass
class ServiceContainer:
    """
    Centralized dependency injection container for the services the API
    endpoints need.

    - config: Resolved application configuration
    - connection: Process-wide Redis connection (shared by all requests)
    - task_service: Task list data access
    - health: Liveness / readiness derivation
    - event_bus: State-change notifications

    Usage:
        services = ServiceContainer(
            config=config,
            connection=connection,
            task_service=TaskService(connection),
            health=HealthSignal(connection, config.server.version),
            event_bus=event_bus
        )
        app = create_app(services)
    """

    config: AppConfig
    connection: StoreConnection
    task_service: TaskService
    health: HealthSignal
    event_bus: EventBus
