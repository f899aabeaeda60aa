"""
Shutdown handler protocol for component-based graceful shutdown.

Each component that needs cleanup implements IShutdownHandler to participate
in the graceful shutdown sequence.
"""

from typing import Protocol

from models.enums import HandlerPhase


class IShutdownHandler(Protocol):
    """
    Protocol for components that need graceful shutdown.

    The ShutdownCoordinator runs handlers phase by phase (DRAIN, then
    CLOSE_STORE, then CLEANUP) and, inside a phase, in descending priority.

    Example:
        class StoreShutdownHandler:
            shutdown_phase = HandlerPhase.CLOSE_STORE

            @property
            def shutdown_priority(self) -> int:
                return 50

            async def shutdown(self) -> None:
                await self.connection.close()
    """

    @property
    def shutdown_phase(self) -> HandlerPhase:
        """
        Step of the sequence this handler belongs to.
        """
        ...

    @property
    def shutdown_priority(self) -> int:
        """
        Higher priority shuts down earlier within its phase.
        """
        ...

    async def shutdown(self) -> None:
        """
        Called during coordinated shutdown.
        """
        ...
