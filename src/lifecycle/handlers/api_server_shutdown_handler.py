from __future__ import annotations
from typing import TYPE_CHECKING

from lifecycle.shutdown_protocol import IShutdownHandler
from models.enums import HandlerPhase
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from lifecycle.api_server_wrapper import APIServerWrapper

log = get_logger().for_category(LogCategory.SHUTDOWN)


class APIServerShutdownHandler(IShutdownHandler):
    """
    Shutdown handler for the API server (FastAPI + Uvicorn).

    Drains the listener: new connections are refused at once, requests
    already in flight are allowed to finish (bounded by drain_timeout).

    Phase: DRAIN, priority 90
    """

    shutdown_phase = HandlerPhase.DRAIN

    def __init__(self, api_wrapper: "APIServerWrapper", drain_timeout: float = 7.5):
        """
        Args:
            api_wrapper: APIServerWrapper instance managing the API server
            drain_timeout: Longest wait for in-flight requests (seconds)
        """
        self.api_wrapper = api_wrapper
        self.drain_timeout = drain_timeout

    @property
    def shutdown_priority(self) -> int:
        return 90

    async def shutdown(self) -> None:
        if not self.api_wrapper.is_running:
            log.debug("API server not running")
            return

        log.info("Stopping API server...")
        await self.api_wrapper.stop(drain_timeout=self.drain_timeout)
