"""
Broker job helpers
"""

from galaksio.x402.broker.client import BrokerClient
from galaksio.x402.broker.jobs import (
    InMemoryJobStore,
    JobRecord,
    JobStore,
    apply_status_update,
)
from galaksio.x402.broker.types import (
    BrokerCacheResponse,
    BrokerJobStatus,
    BrokerRunResponse,
    BrokerStoreResponse,
    CacheRequest,
    RunRequest,
    StoreOptions,
    StoreRequest,
)

__all__ = [
    "BrokerClient",
    "InMemoryJobStore",
    "JobRecord",
    "JobStore",
    "apply_status_update",
    "BrokerCacheResponse",
    "BrokerJobStatus",
    "BrokerRunResponse",
    "BrokerStoreResponse",
    "CacheRequest",
    "RunRequest",
    "StoreOptions",
    "StoreRequest",
]
