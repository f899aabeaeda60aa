"""
main_asyncio.py - Application entry point for the Task API
-----------------------------------------------------------

Responsible for:
- loading configuration and setting up logging
- wiring dependencies (Redis connection, services, FastAPI app)
- starting the API server inside the asyncio loop
- graceful shutdown on SIGINT/SIGTERM (drain -> close Redis -> exit)
"""

import sys

# Set UTF-8 encoding for output BEFORE any imports (fixes Unicode symbol rendering)
if hasattr(sys.stdout, 'reconfigure') and sys.stdout.encoding != 'UTF-8':
    sys.stdout.reconfigure(encoding='utf-8')  # type: ignore
if hasattr(sys.stderr, 'reconfigure') and sys.stderr.encoding != 'UTF-8':
    sys.stderr.reconfigure(encoding='utf-8')  # type: ignore

import asyncio

from api.main import create_app
from lifecycle import ShutdownCoordinator, APIServerWrapper
from lifecycle.handlers import (
    APIServerShutdownHandler,
    StoreShutdownHandler,
    TaskCancellationHandler,
)
from managers import ConfigManager
from models.enums import LogCategory
from services import EventBus, HealthSignal, TaskService, ServiceContainer
from services.middleware import log_middleware
from store import StoreConnection, RetryPolicy
from utils.logger import get_logger, configure_logger

log = get_logger().for_category(LogCategory.SYSTEM)


# ---------------------------------------------------------------------------
# Application Entry
# ---------------------------------------------------------------------------

async def main() -> int:
    """
    Main async entry point.

    Returns:
        Process exit code (0 after a clean shutdown)
    """

    # ========================================================================
    # 1. CONFIGURATION
    # ========================================================================

    config = ConfigManager().load()
    configure_logger(config.log_level)

    log.info("Starting Task API...", version=config.server.version)

    event_bus = EventBus()
    event_bus.add_middleware(log_middleware)

    # ========================================================================
    # 2. STORE
    # ========================================================================
    # connect() never raises: if Redis is down the supervisor keeps retrying
    # and the service still answers liveness probes.

    connection = StoreConnection(
        config.redis,
        retry_policy=RetryPolicy.from_config(config.redis),
        event_bus=event_bus,
    )
    if not await connection.connect():
        log.warn("Starting without Redis; readiness will report NOT READY until it connects")

    # ========================================================================
    # 3. SERVICES + API
    # ========================================================================

    services = ServiceContainer(
        config=config,
        connection=connection,
        task_service=TaskService(connection),
        health=HealthSignal(connection, config.server.version),
        event_bus=event_bus,
    )
    services.health.subscribe(event_bus)
    app = create_app(services)

    coordinator = ShutdownCoordinator(
        drain_timeout=config.shutdown.drain_timeout,
        timeout_per_handler=config.shutdown.handler_timeout,
        event_bus=event_bus,
    )

    api_wrapper = APIServerWrapper(app, host=config.server.host, port=config.server.port)
    try:
        api_task = await api_wrapper.start()
    except RuntimeError as e:
        log.error(f"API server failed to start: {e}")
        await connection.close()
        return 1

    log.info(f"Server running on port {config.server.port}")

    # ========================================================================
    # 4. SHUTDOWN
    # ========================================================================

    # Drain leaves a small margin inside the per-handler bound
    drain_budget = max(config.shutdown.handler_timeout - 0.5, 0.1)

    coordinator.register(APIServerShutdownHandler(api_wrapper, drain_timeout=drain_budget))
    coordinator.register(StoreShutdownHandler(connection, close_timeout=config.shutdown.handler_timeout))
    coordinator.register(TaskCancellationHandler())

    # The API server ending on its own is fatal
    coordinator.monitor(api_task)

    loop = asyncio.get_running_loop()
    coordinator.setup_signal_handlers(loop)

    log.info("🏁 Application initialized. Waiting for exit signal...")

    await coordinator.wait_for_shutdown()

    exit_code = await coordinator.shutdown_all()
    if exit_code == 0:
        log.info("👋 Task API shut down cleanly.")
    return exit_code


def run() -> None:
    """Console script entry point."""
    try:
        exit_code = asyncio.run(main())
    except KeyboardInterrupt:
        log.info("Keyboard interrupt received")
        exit_code = 1
    except Exception as e:
        log.error(f"Fatal error: {e}", exc_info=True)
        exit_code = 1
    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# ENTRY POINT
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    run()
