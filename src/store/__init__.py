"""
Backing store subsystem
-----------------------

Exports the public API for:
- the process-wide Redis connection and its supervisor loop
- the reconnection policy
- store-layer exceptions

External code should import from:
    from store import StoreConnection, RetryPolicy
"""

from .errors import StoreError, StoreUnavailableError, StoreOperationError, StoreCloseError
from .retry_policy import RetryPolicy
from .store_connection import StoreConnection, ConnectionStats, create_redis_client

__all__ = [
    "StoreConnection",
    "ConnectionStats",
    "create_redis_client",
    "RetryPolicy",
    "StoreError",
    "StoreUnavailableError",
    "StoreOperationError",
    "StoreCloseError",
]
