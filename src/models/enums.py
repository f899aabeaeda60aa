"""
Enums for the Task API state machines
"""

from enum import Enum, auto


class ConnectionState(Enum):
    """
    Backing store connection lifecycle

    DISCONNECTED: No usable connection, a retry is scheduled
    CONNECTING: Attempt in progress (bounded by connect timeout)
    CONNECTED: Commands may be issued
    CLOSING: close() requested, waiting for in-flight commands
    CLOSED: Terminal, client released
    """
    DISCONNECTED = auto()
    CONNECTING = auto()
    CONNECTED = auto()
    CLOSING = auto()
    CLOSED = auto()


class ShutdownPhase(Enum):
    """Shutdown sequence phases (FORCED_EXIT reachable from any phase)"""
    RUNNING = auto()
    DRAINING = auto()
    CLOSING_STORE = auto()
    TERMINATED = auto()
    FORCED_EXIT = auto()


class HandlerPhase(Enum):
    """Which step of the shutdown sequence a handler belongs to"""
    DRAIN = auto()        # Stop accepting, let in-flight requests finish
    CLOSE_STORE = auto()  # Release the backing store connection
    CLEANUP = auto()      # Anything left (background tasks)


class LivenessStatus(Enum):
    UP = "UP"


class ReadinessStatus(Enum):
    READY = "READY"
    NOT_READY = "NOT READY"


class LogLevel(Enum):
    """Log severity levels"""
    DEBUG = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()


class LogCategory(Enum):
    """Log categories for grouping related events"""
    CONFIG = auto()      # Configuration loading, env overrides
    STORE = auto()       # Redis connection, reconnects, commands
    HEALTH = auto()      # Liveness / readiness probes
    API = auto()         # HTTP routes, error handlers
    SHUTDOWN = auto()    # Shutdown coordinator + handlers
    LIFECYCLE = auto()   # API server wrapper
    TASK = auto()        # Background asyncio task tracking
    EVENT = auto()       # Event bus
    SYSTEM = auto()      # Startup, fatal errors

    GENERAL = auto()    # Default general category
