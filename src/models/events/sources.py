from enum import Enum, auto


class EventSource(Enum):
    """Event source identifiers for application events"""
    STORE_CONNECTION = auto()      # Redis supervisor loop
    SHUTDOWN_COORDINATOR = auto()  # Shutdown sequence
