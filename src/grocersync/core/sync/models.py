"""
Data models for the sync service.

Defines Pydantic models for entity payloads, state snapshots, conflict
submissions and sync results.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")


class EntityKind(str, Enum):
    """The synchronizable domain entities."""

    CART = "cart"
    ORDERS = "orders"
    PROFILE = "profile"


class SyncAction(str, Enum):
    """
    Outcome of reconciling one entity.

    LOCAL_WINS is only ever reported when the server confirmed it in
    response to a conflict submission.
    """

    NO_CONFLICT = "no_conflict"
    SERVER_WINS = "server_wins"
    LOCAL_WINS = "local_wins"

    @classmethod
    def from_value(cls, value: str) -> SyncAction:
        """Parse a wire value, falling back to NO_CONFLICT for unknown values."""
        try:
            return cls(value)
        except ValueError:
            return cls.NO_CONFLICT


# ==============================================================================
# Entity payloads
# ==============================================================================


class CartItem(BaseModel):
    """A line in the shopping cart as returned by the sync API."""

    model_config = ConfigDict(extra="allow")

    id: str
    product_id: str
    product_name: str = "Unknown Product"
    image_url: str = ""
    quantity: int = Field(ge=0)
    price: float
    total_price: float | None = None
    updated_at: str | None = None


class OrderItem(BaseModel):
    """A product line inside an order."""

    model_config = ConfigDict(extra="allow")

    id: str
    product_id: str
    product_name: str
    product_image_url: str | None = None
    quantity: int
    unit_price: float
    total_price: float


class OrderRecord(BaseModel):
    """
    An order in the customer's history.

    Orders are mutated by server-side processes (payment, driver
    assignment) and are never pushed from the client.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    order_number: str
    status: str
    total_amount: float
    subtotal: float | None = None
    tax_amount: float | None = None
    delivery_fee: float | None = None
    payment_method: str | None = None
    payment_status: str | None = None
    notes: str | None = None
    estimated_delivery_time: str | None = None
    delivered_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    items: list[OrderItem] | None = None


class UserProfile(BaseModel):
    """The customer's profile."""

    model_config = ConfigDict(extra="allow")

    id: str
    email: str | None = None
    full_name: str | None = None
    phone: str | None = None
    address: str | None = None
    role: str | None = None
    avatar_url: str | None = None
    updated_at: str | None = None


# ==============================================================================
# Snapshots
# ==============================================================================


class StateSnapshot(BaseModel, Generic[T]):
    """
    A versioned copy of an entity's data.

    Both the local cached copy and the server's copy are snapshots. They
    are value objects: reconcilers read them and never mutate them.

    Example:
        >>> snap = StateSnapshot[list[CartItem]](
        ...     data=[], updated_at="2024-01-01T00:00:00Z", checksum="abc"
        ... )
        >>> snap.has_checksum
        True
    """

    model_config = ConfigDict(frozen=True)

    data: T
    updated_at: str = Field(description="ISO 8601 timestamp of the last change")
    checksum: str = Field(default="", description="Canonical content hash, empty if unknown")

    @property
    def has_checksum(self) -> bool:
        """Whether this snapshot carries a usable checksum."""
        return bool(self.checksum)

    def matches(self, other: StateSnapshot[Any]) -> bool:
        """Non-empty checksums on both sides that are equal."""
        return self.has_checksum and other.has_checksum and self.checksum == other.checksum


CartSnapshot = StateSnapshot[list[CartItem]]
OrdersSnapshot = StateSnapshot[list[OrderRecord]]
ProfileSnapshot = StateSnapshot[Union[UserProfile, None]]


class ServerState(BaseModel):
    """The server's authoritative snapshot of every entity."""

    model_config = ConfigDict(frozen=True)

    cart: CartSnapshot
    orders: OrdersSnapshot
    profile: ProfileSnapshot
    timestamp: str = ""

    def for_entity(self, entity: EntityKind) -> StateSnapshot[Any]:
        """Return the snapshot for one entity."""
        return getattr(self, entity.value)


# ==============================================================================
# Conflict submission
# ==============================================================================


class CartPayload(BaseModel):
    """Local cart state submitted for adjudication."""

    entity: Literal[EntityKind.CART] = EntityKind.CART
    items: list[CartItem]

    def wire_state(self) -> dict[str, Any]:
        return {"items": [item.model_dump(mode="json") for item in self.items]}


class OrdersPayload(BaseModel):
    """Local orders state. Never submitted by the reconcilers."""

    entity: Literal[EntityKind.ORDERS] = EntityKind.ORDERS
    items: list[OrderRecord]

    def wire_state(self) -> dict[str, Any]:
        return {"items": [item.model_dump(mode="json") for item in self.items]}


class ProfilePayload(BaseModel):
    """Local profile submitted for adjudication."""

    entity: Literal[EntityKind.PROFILE] = EntityKind.PROFILE
    profile: UserProfile

    def wire_state(self) -> dict[str, Any]:
        return self.profile.model_dump(mode="json")


EntityPayload = Annotated[
    Union[CartPayload, OrdersPayload, ProfilePayload],
    Field(discriminator="entity"),
]


class ConflictRequest(BaseModel):
    """Body of a conflict submission to the server."""

    payload: EntityPayload
    local_timestamp: str

    @property
    def entity(self) -> EntityKind:
        return self.payload.entity

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the JSON body the resolve endpoint expects."""
        return {
            "entity": self.payload.entity.value,
            "local_state": self.payload.wire_state(),
            "local_timestamp": self.local_timestamp,
        }


class ConflictResolution(BaseModel):
    """
    The server's verdict on a conflict submission.

    The action is adopted verbatim by the reconcilers.
    """

    action: SyncAction
    resolved_state: dict[str, Any] | list[Any] | None = None
    timestamp: str = ""

    @field_validator("action", mode="before")
    @classmethod
    def _parse_action(cls, value: Any) -> SyncAction:
        if isinstance(value, SyncAction):
            return value
        return SyncAction.from_value(str(value))


# ==============================================================================
# Results
# ==============================================================================


class EntityResult(BaseModel):
    """Result of one reconciliation pass for a single entity."""

    entity: EntityKind
    synced: bool = Field(description="Whether local and remote agree after the pass")
    action: SyncAction | None = Field(
        default=None,
        description="Outcome of the pass, None if it did not complete",
    )
    error: str | None = None


class SyncSummary(BaseModel):
    """
    Aggregated result of a full sync.

    A non-empty ``errors`` list means some entities may hold stale data;
    it is not a hard failure.
    """

    results: dict[EntityKind, EntityResult] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)
    timestamp: str = Field(description="Local timestamp at the start of the sync")

    started_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)

    def result_for(self, entity: EntityKind) -> EntityResult | None:
        return self.results.get(entity)

    def _synced(self, entity: EntityKind) -> bool:
        result = self.results.get(entity)
        return result.synced if result else False

    def _action(self, entity: EntityKind) -> SyncAction | None:
        result = self.results.get(entity)
        return result.action if result else None

    @property
    def cart_synced(self) -> bool:
        return self._synced(EntityKind.CART)

    @property
    def orders_synced(self) -> bool:
        return self._synced(EntityKind.ORDERS)

    @property
    def profile_synced(self) -> bool:
        return self._synced(EntityKind.PROFILE)

    @property
    def cart_action(self) -> SyncAction | None:
        return self._action(EntityKind.CART)

    @property
    def orders_action(self) -> SyncAction | None:
        return self._action(EntityKind.ORDERS)

    @property
    def profile_action(self) -> SyncAction | None:
        return self._action(EntityKind.PROFILE)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def duration_seconds(self) -> float | None:
        """Calculate sync duration in seconds."""
        if self.started_at and self.completed_at:
            delta = self.completed_at - self.started_at
            return delta.total_seconds()
        return None

    def summary(self) -> str:
        """Generate a human-readable summary of the sync."""
        parts = []
        for entity in EntityKind:
            result = self.results.get(entity)
            if result is None:
                parts.append(f"{entity.value}=skipped")
            elif result.synced and result.action is not None:
                parts.append(f"{entity.value}={result.action.value}")
            else:
                parts.append(f"{entity.value}=failed")

        if self.errors:
            parts.append(f"{len(self.errors)} errors")

        return ", ".join(parts)
