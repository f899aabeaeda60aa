from __future__ import annotations
from typing import TYPE_CHECKING

from lifecycle.shutdown_protocol import IShutdownHandler
from models.enums import HandlerPhase
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from store.store_connection import StoreConnection

log = get_logger().for_category(LogCategory.SHUTDOWN)


class StoreShutdownHandler(IShutdownHandler):
    """
    Shutdown handler for the Redis connection.

    Runs after the API server drained, so no new commands can arrive.
    A close failure is logged and swallowed: the process exits regardless.

    Phase: CLOSE_STORE, priority 50
    """

    shutdown_phase = HandlerPhase.CLOSE_STORE

    def __init__(self, connection: "StoreConnection", close_timeout: float = 5.0):
        self.connection = connection
        self.close_timeout = close_timeout

    @property
    def shutdown_priority(self) -> int:
        return 50

    async def shutdown(self) -> None:
        log.info("Closing Redis connection...")
        try:
            await self.connection.close(timeout=self.close_timeout)
        except Exception as e:
            log.error(f"Error closing Redis: {e}")
