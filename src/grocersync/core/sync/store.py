"""
Local state storage for cached entity snapshots.

Manages the cached cart, orders and profile under a state directory, one
JSON file per entity:

    <state_dir>/cart.json
    <state_dir>/orders.json
    <state_dir>/profile.json

Every save is a whole-value overwrite using an atomic write (temp file, then
rename), so a snapshot is never left partially written. The checksum is
computed from the saved content at write time.

Example:
    >>> store = JsonStateStore(Path(".grocersync/state"))
    >>> cart = store.get_cart_state()
    >>> store.save_cart_state(items, "2025-01-30T10:00:00.000Z")
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from grocersync.core.sync import checksum as checksums
from grocersync.core.sync.exceptions import LocalStoreError
from grocersync.core.sync.models import (
    CartItem,
    CartSnapshot,
    EntityKind,
    OrderRecord,
    OrdersSnapshot,
    StateSnapshot,
    UserProfile,
)

logger = logging.getLogger(__name__)


class LocalStateStore(Protocol):
    """Persistence boundary for cached entity snapshots."""

    def get_cart_state(self) -> CartSnapshot:
        ...

    def get_orders_state(self) -> OrdersSnapshot:
        ...

    def get_profile_state(self) -> StateSnapshot[UserProfile] | None:
        ...

    def save_cart_state(self, items: list[CartItem], timestamp: str) -> None:
        ...

    def save_orders_state(self, items: list[OrderRecord], timestamp: str) -> None:
        ...

    def save_profile_state(self, profile: UserProfile, timestamp: str) -> None:
        ...

    def is_local_newer(self, local_timestamp: str, remote_timestamp: str) -> bool:
        ...

    def get_current_timestamp(self) -> str:
        ...


class JsonStateStore:
    """
    LocalStateStore backed by JSON files.

    Missing cart and orders files read as empty state stamped with the Unix
    epoch and an empty checksum, so any server copy wins against them. A
    missing profile reads as None.
    """

    def __init__(self, state_dir: Path) -> None:
        """
        Initialize store with a state directory.

        Args:
            state_dir: Directory holding the per-entity JSON files
        """
        self.state_dir = Path(state_dir)

    def path_for(self, entity: EntityKind) -> Path:
        """Path of the file caching one entity."""
        return self.state_dir / f"{entity.value}.json"

    # ==================== Cart State ====================

    def get_cart_state(self) -> CartSnapshot:
        raw = self._read(EntityKind.CART)
        if raw is None:
            return CartSnapshot(data=[], updated_at=checksums.UNIX_EPOCH, checksum="")
        return self._parse(EntityKind.CART, CartSnapshot, raw)

    def save_cart_state(self, items: list[CartItem], timestamp: str) -> None:
        self._write(EntityKind.CART, items, timestamp)
        logger.debug("Cart state saved: %d items, timestamp=%s", len(items), timestamp)

    def clear_cart_state(self) -> None:
        """Reset the cart to empty with an epoch timestamp."""
        self._write(EntityKind.CART, [], checksums.UNIX_EPOCH)

    # ==================== Orders State ====================

    def get_orders_state(self) -> OrdersSnapshot:
        raw = self._read(EntityKind.ORDERS)
        if raw is None:
            return OrdersSnapshot(data=[], updated_at=checksums.UNIX_EPOCH, checksum="")
        return self._parse(EntityKind.ORDERS, OrdersSnapshot, raw)

    def save_orders_state(self, items: list[OrderRecord], timestamp: str) -> None:
        self._write(EntityKind.ORDERS, items, timestamp)
        logger.debug("Orders state saved: %d orders, timestamp=%s", len(items), timestamp)

    def clear_orders_state(self) -> None:
        """Reset orders to empty with an epoch timestamp."""
        self._write(EntityKind.ORDERS, [], checksums.UNIX_EPOCH)

    # ==================== Profile State ====================

    def get_profile_state(self) -> StateSnapshot[UserProfile] | None:
        raw = self._read(EntityKind.PROFILE)
        if raw is None:
            return None
        return self._parse(EntityKind.PROFILE, StateSnapshot[UserProfile], raw)

    def save_profile_state(self, profile: UserProfile, timestamp: str) -> None:
        self._write(EntityKind.PROFILE, profile, timestamp)
        logger.debug("Profile state saved: timestamp=%s", timestamp)

    def clear_profile_state(self) -> None:
        """Forget the cached profile."""
        self._remove(EntityKind.PROFILE)

    # ==================== Utility Methods ====================

    def clear_all_state(self) -> None:
        """Remove every cached snapshot (e.g. on logout)."""
        for entity in EntityKind:
            self._remove(entity)
        logger.info("All local state cleared")

    def is_local_newer(self, local_timestamp: str, remote_timestamp: str) -> bool:
        return checksums.is_local_newer(local_timestamp, remote_timestamp)

    def get_current_timestamp(self) -> str:
        return checksums.current_timestamp()

    def _read(self, entity: EntityKind) -> dict[str, Any] | None:
        path = self.path_for(entity)
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise LocalStoreError(
                f"Failed to read {entity.value} state",
                path=str(path),
                error=str(e),
            ) from e

        if not isinstance(data, dict):
            raise LocalStoreError(f"Corrupt {entity.value} state file", path=str(path))
        return data

    def _parse(self, entity: EntityKind, model: Any, raw: dict[str, Any]) -> Any:
        try:
            return model.model_validate(raw)
        except ValidationError as e:
            raise LocalStoreError(
                f"Corrupt {entity.value} state file",
                path=str(self.path_for(entity)),
                errors=e.error_count(),
            ) from e

    def _write(self, entity: EntityKind, data: Any, timestamp: str) -> None:
        path = self.path_for(entity)
        document = {
            "data": json.loads(checksums.canonical_json(data)),
            "updated_at": timestamp,
            "checksum": checksums.compute_checksum(data),
        }

        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            # Atomic write: temp file in the same directory, then rename
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self.state_dir,
                delete=False,
                suffix=".tmp",
            ) as tmp:
                json.dump(document, tmp, indent=2)
                tmp.flush()
                tmp_path = Path(tmp.name)
            tmp_path.replace(path)
        except OSError as e:
            raise LocalStoreError(
                f"Failed to save {entity.value} state",
                path=str(path),
                error=str(e),
            ) from e

    def _remove(self, entity: EntityKind) -> None:
        path = self.path_for(entity)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise LocalStoreError(f"Failed to clear {entity.value} state", path=str(path)) from e


__all__ = [
    "LocalStateStore",
    "JsonStateStore",
]
