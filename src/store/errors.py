"""
Store-layer exceptions

Raised by StoreConnection and TaskService; the API layer maps them to
HTTP responses (see api.middleware.error_handler).
"""


class StoreError(Exception):
    """Base class for backing store failures"""


class StoreUnavailableError(StoreError):
    """No live connection; raised before any command is sent"""


class StoreOperationError(StoreError):
    """A command, protocol or serialization failure mid-request"""


class StoreCloseError(StoreError):
    """The store did not acknowledge closure during shutdown"""
