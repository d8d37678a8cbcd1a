"""
Tests for sync data models.

Tests cover:
- SyncAction parsing of wire values
- StateSnapshot checksum matching
- Conflict request serialization per entity
- SyncSummary accessors and the human-readable summary
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import TypeAdapter, ValidationError

from grocersync.core.sync.models import (
    CartItem,
    CartPayload,
    CartSnapshot,
    ConflictRequest,
    ConflictResolution,
    EntityKind,
    EntityPayload,
    EntityResult,
    ProfilePayload,
    SyncAction,
    SyncSummary,
    UserProfile,
)


class TestSyncAction:
    """Tests for SyncAction.from_value()."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("no_conflict", SyncAction.NO_CONFLICT),
            ("server_wins", SyncAction.SERVER_WINS),
            ("local_wins", SyncAction.LOCAL_WINS),
        ],
    )
    def test_known_values(self, value: str, expected: SyncAction) -> None:
        assert SyncAction.from_value(value) is expected

    def test_unknown_value_falls_back_to_no_conflict(self) -> None:
        assert SyncAction.from_value("merged") is SyncAction.NO_CONFLICT


class TestCartItem:
    """Tests for CartItem validation."""

    def test_defaults(self) -> None:
        item = CartItem(id="c1", product_id="p1", quantity=1, price=2.0)
        assert item.product_name == "Unknown Product"
        assert item.image_url == ""

    def test_negative_quantity_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CartItem(id="c1", product_id="p1", quantity=-1, price=2.0)

    def test_extra_fields_kept(self) -> None:
        item = CartItem.model_validate(
            {"id": "c1", "product_id": "p1", "quantity": 1, "price": 2.0, "unit": "kg"}
        )
        assert item.model_dump()["unit"] == "kg"


class TestStateSnapshot:
    """Tests for StateSnapshot.matches()."""

    def test_equal_checksums_match(self) -> None:
        a = CartSnapshot(data=[], updated_at="1", checksum="abc")
        b = CartSnapshot(data=[], updated_at="2", checksum="abc")
        assert a.matches(b)

    def test_different_checksums_do_not_match(self) -> None:
        a = CartSnapshot(data=[], updated_at="1", checksum="abc")
        b = CartSnapshot(data=[], updated_at="1", checksum="xyz")
        assert not a.matches(b)

    def test_empty_checksums_never_match(self) -> None:
        """Two unknown checksums are not evidence of equal content."""
        a = CartSnapshot(data=[], updated_at="1", checksum="")
        b = CartSnapshot(data=[], updated_at="1", checksum="")
        assert not a.has_checksum
        assert not a.matches(b)

    def test_snapshots_are_frozen(self) -> None:
        snap = CartSnapshot(data=[], updated_at="1", checksum="abc")
        with pytest.raises(ValidationError):
            snap.checksum = "other"  # type: ignore[misc]


class TestConflictRequest:
    """Tests for conflict request serialization."""

    def test_cart_wire_format(self, cart_items: list[CartItem]) -> None:
        request = ConflictRequest(payload=CartPayload(items=cart_items), local_timestamp="100")
        wire = request.to_wire()

        assert request.entity is EntityKind.CART
        assert wire["entity"] == "cart"
        assert wire["local_timestamp"] == "100"
        assert [i["id"] for i in wire["local_state"]["items"]] == ["c1", "c2"]

    def test_profile_wire_format(self, profile: UserProfile) -> None:
        request = ConflictRequest(payload=ProfilePayload(profile=profile), local_timestamp="5")
        wire = request.to_wire()

        assert wire["entity"] == "profile"
        assert wire["local_state"]["email"] == "ada@example.com"

    def test_payload_discriminated_by_entity(self) -> None:
        payload = TypeAdapter(EntityPayload).validate_python(
            {"entity": "profile", "profile": {"id": "u1"}}
        )
        assert isinstance(payload, ProfilePayload)


class TestConflictResolution:
    """Tests for ConflictResolution parsing."""

    def test_parses_action(self) -> None:
        resolution = ConflictResolution.model_validate(
            {"action": "local_wins", "resolved_state": {"items": []}, "timestamp": "t"}
        )
        assert resolution.action is SyncAction.LOCAL_WINS

    def test_unknown_action_is_no_conflict(self) -> None:
        resolution = ConflictResolution.model_validate({"action": "merged"})
        assert resolution.action is SyncAction.NO_CONFLICT


class TestSyncSummary:
    """Tests for SyncSummary accessors."""

    def _summary(self) -> SyncSummary:
        return SyncSummary(
            results={
                EntityKind.CART: EntityResult(
                    entity=EntityKind.CART, synced=True, action=SyncAction.NO_CONFLICT
                ),
                EntityKind.ORDERS: EntityResult(
                    entity=EntityKind.ORDERS, synced=True, action=SyncAction.SERVER_WINS
                ),
                EntityKind.PROFILE: EntityResult(
                    entity=EntityKind.PROFILE, synced=False, error="boom"
                ),
            },
            errors=["profile sync failed: boom"],
            timestamp="2024-01-01T00:00:00Z",
        )

    def test_entity_accessors(self) -> None:
        summary = self._summary()
        assert summary.cart_synced
        assert summary.cart_action is SyncAction.NO_CONFLICT
        assert summary.orders_action is SyncAction.SERVER_WINS
        assert not summary.profile_synced
        assert summary.profile_action is None
        assert summary.has_errors

    def test_summary_text(self) -> None:
        assert self._summary().summary() == (
            "cart=no_conflict, orders=server_wins, profile=failed, 1 errors"
        )

    def test_missing_result_is_skipped(self) -> None:
        summary = SyncSummary(timestamp="t")
        assert not summary.cart_synced
        assert summary.result_for(EntityKind.CART) is None
        assert summary.summary() == "cart=skipped, orders=skipped, profile=skipped"

    def test_duration_seconds(self) -> None:
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        summary = SyncSummary(
            timestamp="t",
            started_at=start,
            completed_at=start + timedelta(seconds=2.5),
        )
        assert summary.duration_seconds == 2.5

    def test_duration_unknown_without_times(self) -> None:
        assert SyncSummary(timestamp="t").duration_seconds is None
