from enum import Enum, auto


class EventType(Enum):
    # Store connection
    CONNECTION_STATE_CHANGED = auto()

    # Lifecycle
    SHUTDOWN_REQUESTED = auto()
    SHUTDOWN_PHASE_CHANGED = auto()
