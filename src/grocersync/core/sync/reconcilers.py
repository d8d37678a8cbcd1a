"""
Per-entity reconciliation policies.

Each reconciler compares the cached local snapshot of one entity with the
server's snapshot and decides what to do:

1. Non-empty checksums that match: nothing to do (NO_CONFLICT).
2. Local strictly newer: submit local state to the server, which has the
   final say. Its action is adopted verbatim and nothing is written locally.
3. Otherwise (remote newer or equal, or nothing cached): overwrite the
   local copy with the server's data and timestamp (SERVER_WINS).

Orders are server-authoritative and skip step 2 entirely: order lifecycle
is driven by server-side processes (payment, driver assignment) that a
client cannot outrank.

Reconcilers hold no state between passes.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Protocol

from grocersync.core.sync.exceptions import SyncError
from grocersync.core.sync.models import (
    CartPayload,
    ConflictResolution,
    EntityKind,
    EntityPayload,
    EntityResult,
    OrdersPayload,
    ProfilePayload,
    StateSnapshot,
    SyncAction,
)
from grocersync.core.sync.store import LocalStateStore

logger = logging.getLogger(__name__)


class ConflictResolver(Protocol):
    """Submits local state for adjudication (retry and connectivity included)."""

    def resolve_conflict(
        self,
        entity: EntityKind,
        payload: EntityPayload,
        local_timestamp: str,
    ) -> ConflictResolution:
        ...


class EntityReconciler:
    """
    Base reconciliation policy for one entity.

    Subclasses bind the entity kind and the store slot it lives in.
    """

    kind: ClassVar[EntityKind]
    server_authoritative: ClassVar[bool] = False

    def __init__(self, store: LocalStateStore, resolver: ConflictResolver) -> None:
        self.store = store
        self.resolver = resolver

    def load_local(self) -> StateSnapshot[Any] | None:
        raise NotImplementedError

    def save_local(self, snapshot: StateSnapshot[Any]) -> None:
        raise NotImplementedError

    def build_payload(self, local: StateSnapshot[Any]) -> EntityPayload:
        raise NotImplementedError

    def run(self, remote: StateSnapshot[Any]) -> EntityResult:
        """Read the local snapshot fresh and reconcile it against the remote one."""
        return self.reconcile(self.load_local(), remote)

    def reconcile(
        self,
        local: StateSnapshot[Any] | None,
        remote: StateSnapshot[Any],
    ) -> EntityResult:
        """
        Reconcile one entity.

        Args:
            local: Cached snapshot, or None if nothing is cached
            remote: Server snapshot

        Returns:
            EntityResult describing the outcome

        Raises:
            LocalStoreError: If overwriting the local copy fails
        """
        name = self.kind.value

        if local is not None and local.matches(remote):
            logger.debug("%s: checksum match, IDLE -> SYNCED", name)
            return EntityResult(entity=self.kind, synced=True, action=SyncAction.NO_CONFLICT)

        if (
            local is not None
            and not self.server_authoritative
            and self.store.is_local_newer(local.updated_at, remote.updated_at)
        ):
            return self._push(local)

        return self._pull(remote)

    def _push(self, local: StateSnapshot[Any]) -> EntityResult:
        name = self.kind.value
        logger.debug("%s: local is newer, IDLE -> PUSHING", name)

        try:
            resolution = self.resolver.resolve_conflict(
                self.kind,
                self.build_payload(local),
                local.updated_at,
            )
        except SyncError as e:
            logger.warning("%s: push failed, PUSHING -> FAILED: %s", name, e)
            return EntityResult(entity=self.kind, synced=False, action=None, error=str(e))

        logger.debug("%s: PUSHING -> SYNCED (server says %s)", name, resolution.action.value)
        return EntityResult(entity=self.kind, synced=True, action=resolution.action)

    def _pull(self, remote: StateSnapshot[Any]) -> EntityResult:
        logger.debug("%s: server is newer, IDLE -> PULLING", self.kind.value)
        self.save_local(remote)
        logger.debug("%s: PULLING -> SYNCED", self.kind.value)
        return EntityResult(entity=self.kind, synced=True, action=SyncAction.SERVER_WINS)


class CartReconciler(EntityReconciler):
    kind = EntityKind.CART

    def load_local(self) -> StateSnapshot[Any]:
        return self.store.get_cart_state()

    def save_local(self, snapshot: StateSnapshot[Any]) -> None:
        self.store.save_cart_state(snapshot.data, snapshot.updated_at)

    def build_payload(self, local: StateSnapshot[Any]) -> EntityPayload:
        return CartPayload(items=local.data)


class OrdersReconciler(EntityReconciler):
    """Orders always take the server's copy on any mismatch."""

    kind = EntityKind.ORDERS
    server_authoritative = True

    def load_local(self) -> StateSnapshot[Any]:
        return self.store.get_orders_state()

    def save_local(self, snapshot: StateSnapshot[Any]) -> None:
        self.store.save_orders_state(snapshot.data, snapshot.updated_at)

    def build_payload(self, local: StateSnapshot[Any]) -> EntityPayload:
        return OrdersPayload(items=local.data)


class ProfileReconciler(EntityReconciler):
    """
    Profile policy.

    A missing local profile is filled from the server. When the server has
    no profile the local copy, if any, is the only one and gets pushed.
    """

    kind = EntityKind.PROFILE

    def load_local(self) -> StateSnapshot[Any] | None:
        return self.store.get_profile_state()

    def save_local(self, snapshot: StateSnapshot[Any]) -> None:
        self.store.save_profile_state(snapshot.data, snapshot.updated_at)

    def build_payload(self, local: StateSnapshot[Any]) -> EntityPayload:
        return ProfilePayload(profile=local.data)

    def reconcile(
        self,
        local: StateSnapshot[Any] | None,
        remote: StateSnapshot[Any],
    ) -> EntityResult:
        if remote.data is None:
            if local is None:
                logger.debug("profile: absent on both sides")
                return EntityResult(entity=self.kind, synced=True, action=SyncAction.NO_CONFLICT)
            return self._push(local)
        return super().reconcile(local, remote)


RECONCILERS: tuple[type[EntityReconciler], ...] = (
    CartReconciler,
    OrdersReconciler,
    ProfileReconciler,
)


__all__ = [
    "ConflictResolver",
    "EntityReconciler",
    "CartReconciler",
    "OrdersReconciler",
    "ProfileReconciler",
    "RECONCILERS",
]
