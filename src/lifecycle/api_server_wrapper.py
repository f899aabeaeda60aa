from __future__ import annotations
import asyncio
import contextlib
import uvicorn
from fastapi import FastAPI
from typing import Optional
from lifecycle.task_registry import create_tracked_task, TaskCategory
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.LIFECYCLE)


class APIServerWrapper:
    """
    Runs Uvicorn inside the application's event loop without Uvicorn's
    signal handlers interfering with the shutdown coordinator.

    Behaviour:
      - start() launches uvicorn.Server.serve() as a background task and
        returns once the listener is bound.
      - stop() drains: the listener closes immediately (new connections are
        refused), requests already in flight run to completion, then the
        serve task ends. Only when drain_timeout expires are the remaining
        connections abandoned.
    """

    def __init__(
        self,
        app: FastAPI,
        host: str = "0.0.0.0",
        port: int = 3000,
    ):
        self.app = app
        self.host = host
        self.port = port
        self._server: Optional[uvicorn.Server] = None
        self._serve_task: Optional[asyncio.Task] = None

    # ----------------------------------------------------------------------
    # INTERNAL
    # ----------------------------------------------------------------------
    def _create_server(self) -> uvicorn.Server:
        """Create a uvicorn.Server instance with disabled signal handlers."""
        config = uvicorn.Config(
            app=self.app,
            host=self.host,
            port=self.port,
            loop="asyncio",
            log_level="warning",
            access_log=False,
            server_header=False,
            # Drain bound is owned by the shutdown coordinator
            timeout_graceful_shutdown=None,
        )

        server = uvicorn.Server(config)

        # Explicitly disable uvicorn's own signal handlers (SIGINT/SIGTERM belong
        # to the ShutdownCoordinator)
        server.capture_signals = contextlib.nullcontext  # type: ignore

        return server

    # ----------------------------------------------------------------------
    # PUBLIC API
    # ----------------------------------------------------------------------
    async def start(self, *, wait_started_timeout: float = 5.0) -> asyncio.Task:
        """
        Start uvicorn in background and wait until it is listening.

        Returns:
            The serve task (hand it to ShutdownCoordinator.monitor())

        Raises:
            RuntimeError: Already running, or serve() ended before binding
        """
        if self._serve_task is not None and not self._serve_task.done():
            raise RuntimeError("API server already started")

        self._server = self._create_server()

        log.info(f"🌐 Launching API server on http://{self.host}:{self.port}")

        self._serve_task = create_tracked_task(
            self._server.serve(),
            category=TaskCategory.API,
            description="FastAPI/Uvicorn Server",
        )

        loop = asyncio.get_running_loop()
        deadline = loop.time() + wait_started_timeout
        while loop.time() < deadline:
            if getattr(self._server, "started", False):
                log.info("🌐 API server started")
                return self._serve_task
            if self._serve_task.done():
                raise RuntimeError("API server exited during startup")
            await asyncio.sleep(0.02)

        log.warn(f"🌐 API server not reported started after {wait_started_timeout}s")
        return self._serve_task

    async def stop(self, *, drain_timeout: float = 8.0) -> None:
        """
        Stop accepting connections and wait for in-flight requests.

        Steps:
          1. set server.should_exit, uvicorn closes its listening sockets and
             waits for open requests to finish
          2. if that exceeds drain_timeout, set force_exit and cancel serve()
        """
        if self._server is None or self._serve_task is None or self._serve_task.done():
            log.warn("API server stop() called but server was not running")
            self._server = None
            self._serve_task = None
            return

        log.info("🌐 Draining API server (no new connections accepted)...")
        self._server.should_exit = True

        try:
            await asyncio.wait_for(asyncio.shield(self._serve_task), timeout=drain_timeout)
            log.info("🌐 API server drained")
        except asyncio.TimeoutError:
            log.warn(f"🌐 API server drain exceeded {drain_timeout}s; abandoning open connections")
            self._server.force_exit = True
            self._serve_task.cancel()
            try:
                await asyncio.wait_for(self._serve_task, timeout=1.0)
            except (asyncio.CancelledError, asyncio.TimeoutError):
                log.debug("Uvicorn serve task cancelled")
        except Exception as e:
            log.error(f"Error while draining API server: {e}", exc_info=True)
        finally:
            self._server = None
            self._serve_task = None

        log.info("🌐 API server stopped and port released")

    # ----------------------------------------------------------------------
    # PROPERTIES
    # ----------------------------------------------------------------------
    @property
    def is_running(self) -> bool:
        """Return whether a uvicorn serve task is active."""
        return self._serve_task is not None and not self._serve_task.done()

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._serve_task

    @property
    def server(self) -> Optional[uvicorn.Server]:
        return self._server
