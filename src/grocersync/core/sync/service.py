"""
Full-sync orchestration.

SyncService sequences one reconciliation pass:

1. Connectivity check: offline fails fast with NetworkUnavailableError
2. One fetch of the server's state for every entity (retried)
3. Each entity reconciled independently; a failure is recorded and the
   remaining entities still run
4. Results aggregated into a SyncSummary

Only the connectivity check and the initial fetch can fail the whole call,
since without the server's state there is nothing to reconcile against.
All calls block while retries back off, so run them off any
latency-sensitive path (see SyncWorker).
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from grocersync.core.sync.connectivity import ConnectivityGuard, ProbeConnectivityGuard
from grocersync.core.sync.exceptions import ConfigurationError, NetworkUnavailableError
from grocersync.core.sync.gateway import HttpStateGateway, RemoteStateGateway
from grocersync.core.sync.models import (
    ConflictRequest,
    ConflictResolution,
    EntityKind,
    EntityPayload,
    EntityResult,
    ServerState,
    SyncSummary,
)
from grocersync.core.sync.reconcilers import RECONCILERS, EntityReconciler
from grocersync.core.sync.retry import RetryConfig, RetryExecutor
from grocersync.core.sync.store import JsonStateStore, LocalStateStore

if TYPE_CHECKING:
    from grocersync.core.config.models import GrocerSyncConfig

logger = logging.getLogger(__name__)


class SyncService:
    """
    Reconciles cached cart, orders and profile with the server.

    Example:
        >>> service = SyncService(gateway=gateway, store=store, guard=guard)
        >>> summary = service.perform_full_sync()
        >>> summary.cart_action
        <SyncAction.NO_CONFLICT: 'no_conflict'>
    """

    def __init__(
        self,
        gateway: RemoteStateGateway,
        store: LocalStateStore,
        guard: ConnectivityGuard,
        executor: RetryExecutor | None = None,
        parallel_entities: bool = False,
    ) -> None:
        """
        Initialize the sync service.

        Args:
            gateway: Network boundary to the server's state
            store: Local snapshot store
            guard: Connectivity check run before any network attempt
            executor: Retry executor for network calls (defaults to 3 attempts)
            parallel_entities: Reconcile entities on a thread pool
        """
        self.gateway = gateway
        self.store = store
        self.guard = guard
        self.executor = executor or RetryExecutor()
        self.parallel_entities = parallel_entities
        self.reconcilers: list[EntityReconciler] = [cls(store, self) for cls in RECONCILERS]

    @classmethod
    def from_config(
        cls,
        config: GrocerSyncConfig,
        project_dir: Path | None = None,
    ) -> SyncService:
        """
        Build a service wired to the HTTP gateway and the JSON store.

        Args:
            config: Loaded configuration
            project_dir: Base for a relative state directory (defaults to cwd)

        Raises:
            ConfigurationError: If the API base URL is missing or is not an
                absolute http(s) URL
        """
        base_url = config.api.base_url
        if not base_url:
            raise ConfigurationError(
                "No API base URL configured (set api.base_url or GROCERSYNC_API_URL)",
                base_url=None,
            )
        parsed = urlparse(base_url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ConfigurationError(
                f"Invalid API base URL {base_url!r}: expected http(s)://host[:port]",
                base_url=base_url,
            )

        state_dir = Path(config.state.state_dir)
        if not state_dir.is_absolute():
            state_dir = (project_dir or Path.cwd()) / state_dir

        gateway = HttpStateGateway(
            config.api.base_url,
            access_token=config.api.access_token,
            timeout=config.api.timeout_seconds,
        )
        guard = ProbeConnectivityGuard.from_url(
            config.api.base_url,
            timeout=config.api.probe_timeout_seconds,
        )
        executor = RetryExecutor(
            RetryConfig(
                max_attempts=config.retry.max_attempts,
                base_delay=config.retry.base_delay,
                multiplier=config.retry.multiplier,
            )
        )
        return cls(
            gateway=gateway,
            store=JsonStateStore(state_dir),
            guard=guard,
            executor=executor,
            parallel_entities=config.sync.parallel_entities,
        )

    def __enter__(self) -> SyncService:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Release the gateway's connections, if it holds any."""
        close = getattr(self.gateway, "close", None)
        if callable(close):
            close()

    def _require_network(self, operation: str) -> None:
        if not self.guard.is_available():
            logger.warning("No network connectivity, skipping %s", operation)
            raise NetworkUnavailableError(operation=operation)

    def fetch_server_state(self) -> ServerState:
        """
        Fetch the server's snapshot of every entity.

        Raises:
            NetworkUnavailableError: If offline (no attempt made)
            RetriesExhaustedError: If every attempt failed transiently
            ServerRejectedError: If the server refused the request
        """
        self._require_network("fetch")
        return self.executor.run(self.gateway.fetch_server_state, name="fetch_server_state")

    def resolve_conflict(
        self,
        entity: EntityKind,
        payload: EntityPayload,
        local_timestamp: str,
    ) -> ConflictResolution:
        """
        Submit local state for one entity to the server.

        Raises:
            NetworkUnavailableError: If offline (no attempt made)
            RetriesExhaustedError: If every attempt failed transiently
            ServerRejectedError: If the server refused the request
        """
        self._require_network("resolve")
        request = ConflictRequest(payload=payload, local_timestamp=local_timestamp)
        resolution = self.executor.run(
            lambda: self.gateway.resolve_conflict(request),
            name=f"resolve_conflict[{entity.value}]",
        )
        logger.info("Resolved conflict for %s: action=%s", entity.value, resolution.action.value)
        return resolution

    def perform_full_sync(self) -> SyncSummary:
        """
        Run one full reconciliation pass over cart, orders and profile.

        Returns:
            SyncSummary, even if some entities failed

        Raises:
            NetworkUnavailableError: If offline (no gateway call made)
            SyncError: If the server state could not be fetched
        """
        self._require_network("full sync")

        logger.info("Starting full sync")
        started_at = datetime.now(timezone.utc)
        timestamp = self.store.get_current_timestamp()

        try:
            server_state = self.executor.run(
                self.gateway.fetch_server_state, name="fetch_server_state"
            )
        except Exception as e:
            logger.error("Failed to fetch server state: %s", e)
            raise

        if self.parallel_entities:
            with ThreadPoolExecutor(max_workers=len(self.reconcilers)) as pool:
                futures = [
                    pool.submit(self._reconcile_entity, reconciler, server_state)
                    for reconciler in self.reconcilers
                ]
                outcomes = [future.result() for future in futures]
        else:
            outcomes = [
                self._reconcile_entity(reconciler, server_state)
                for reconciler in self.reconcilers
            ]

        results: dict[EntityKind, EntityResult] = {}
        errors: list[str] = []
        for result in outcomes:
            results[result.entity] = result
            if result.error:
                errors.append(f"{result.entity.value} sync failed: {result.error}")

        summary = SyncSummary(
            results=results,
            errors=errors,
            timestamp=timestamp,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
        )
        logger.info("Full sync completed: %s", summary.summary())
        return summary

    def _reconcile_entity(
        self,
        reconciler: EntityReconciler,
        server_state: ServerState,
    ) -> EntityResult:
        kind = reconciler.kind
        try:
            return reconciler.run(server_state.for_entity(kind))
        except Exception as e:
            logger.exception("Error syncing %s", kind.value)
            return EntityResult(entity=kind, synced=False, action=None, error=str(e))


__all__ = ["SyncService"]
