"""
Client-side state reconciliation for the grocery platform.

This package keeps the locally cached cart, order history and profile
consistent with the server's authoritative copy after offline periods or
multi-device divergence. It uses content checksums, timestamps and
per-entity authority rules (orders always take the server's copy).

Example:
    >>> from grocersync.core.sync import SyncService
    >>> service = SyncService(gateway=gateway, store=store, guard=guard)
    >>> summary = service.perform_full_sync()
    >>> if summary.errors:
    ...     print("Some entities may be stale:", summary.errors)
"""

from grocersync.core.sync.connectivity import (
    ConnectivityGuard,
    ProbeConnectivityGuard,
    StaticConnectivityGuard,
)
from grocersync.core.sync.exceptions import (
    ConfigurationError,
    LocalStoreError,
    NetworkUnavailableError,
    RetriesExhaustedError,
    ServerRejectedError,
    SyncError,
    TransportError,
)
from grocersync.core.sync.gateway import HttpStateGateway, RemoteStateGateway
from grocersync.core.sync.models import (
    CartItem,
    EntityKind,
    EntityResult,
    OrderRecord,
    ServerState,
    StateSnapshot,
    SyncAction,
    SyncSummary,
    UserProfile,
)
from grocersync.core.sync.retry import RetryConfig, RetryExecutor
from grocersync.core.sync.service import SyncService
from grocersync.core.sync.store import JsonStateStore, LocalStateStore
from grocersync.core.sync.worker import SyncWorker, WorkerOutcome

__all__ = [
    "SyncService",
    "SyncWorker",
    "WorkerOutcome",
    "ConnectivityGuard",
    "ProbeConnectivityGuard",
    "StaticConnectivityGuard",
    "RemoteStateGateway",
    "HttpStateGateway",
    "LocalStateStore",
    "JsonStateStore",
    "RetryConfig",
    "RetryExecutor",
    "EntityKind",
    "SyncAction",
    "StateSnapshot",
    "ServerState",
    "EntityResult",
    "SyncSummary",
    "CartItem",
    "OrderRecord",
    "UserProfile",
    "SyncError",
    "NetworkUnavailableError",
    "TransportError",
    "RetriesExhaustedError",
    "ServerRejectedError",
    "LocalStoreError",
    "ConfigurationError",
]
