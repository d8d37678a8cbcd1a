"""
Pytest configuration and shared fixtures.

Provides sample entity data, server-state builders, a JSON state store in a
temp directory and a sync service wired to a mocked gateway.
"""

from pathlib import Path
from typing import Any, Callable
from unittest.mock import MagicMock, Mock

import pytest

from grocersync.core.config import clear_cache
from grocersync.core.sync.checksum import compute_checksum
from grocersync.core.sync.connectivity import StaticConnectivityGuard
from grocersync.core.sync.models import (
    CartItem,
    CartSnapshot,
    OrderItem,
    OrderRecord,
    OrdersSnapshot,
    ProfileSnapshot,
    ServerState,
    UserProfile,
)
from grocersync.core.sync.retry import RetryConfig, RetryExecutor
from grocersync.core.sync.service import SyncService
from grocersync.core.sync.store import JsonStateStore

# ==============================================================================
# Isolation
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep user config, env overrides and the config cache out of every test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in (
        "GROCERSYNC_API_URL",
        "GROCERSYNC_ACCESS_TOKEN",
        "GROCERSYNC_MAX_RETRIES",
        "GROCERSYNC_RETRY_BASE_DELAY",
        "GROCERSYNC_STATE_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_cache()
    yield
    clear_cache()


# ==============================================================================
# Sample Entities
# ==============================================================================


@pytest.fixture
def cart_items() -> list[CartItem]:
    """Two cart lines."""
    return [
        CartItem(
            id="c1",
            product_id="p-apple",
            product_name="Apples",
            quantity=3,
            price=0.5,
            total_price=1.5,
        ),
        CartItem(
            id="c2",
            product_id="p-milk",
            product_name="Milk",
            quantity=1,
            price=1.2,
            total_price=1.2,
        ),
    ]


@pytest.fixture
def orders() -> list[OrderRecord]:
    """One delivered order."""
    return [
        OrderRecord(
            id="o1",
            order_number="ORD-0001",
            status="delivered",
            total_amount=12.5,
            payment_status="paid",
            items=[
                OrderItem(
                    id="oi1",
                    product_id="p-bread",
                    product_name="Bread",
                    quantity=2,
                    unit_price=2.5,
                    total_price=5.0,
                )
            ],
        )
    ]


@pytest.fixture
def profile() -> UserProfile:
    """A customer profile."""
    return UserProfile(
        id="u1",
        email="ada@example.com",
        full_name="Ada Lovelace",
        phone="+15550100",
        role="customer",
    )


# ==============================================================================
# Server State
# ==============================================================================


def build_server_state(
    cart: list[CartItem] | None = None,
    cart_ts: str = "2024-01-01T00:00:00Z",
    orders: list[OrderRecord] | None = None,
    orders_ts: str = "2024-01-01T00:00:00Z",
    profile: UserProfile | None = None,
    profile_ts: str = "2024-01-01T00:00:00Z",
) -> ServerState:
    """Build a ServerState with checksums computed the way the gateway does."""
    cart = cart or []
    orders = orders or []
    return ServerState(
        cart=CartSnapshot(data=cart, updated_at=cart_ts, checksum=compute_checksum(cart)),
        orders=OrdersSnapshot(
            data=orders, updated_at=orders_ts, checksum=compute_checksum(orders)
        ),
        profile=ProfileSnapshot(
            data=profile,
            updated_at=profile_ts,
            checksum=compute_checksum(profile) if profile is not None else "",
        ),
        timestamp="2024-01-01T00:00:10Z",
    )


@pytest.fixture
def make_server_state() -> Callable[..., ServerState]:
    """Factory for ServerState values."""
    return build_server_state


# ==============================================================================
# Service Wiring
# ==============================================================================


@pytest.fixture
def no_sleep() -> Mock:
    """Sleep replacement that records requested delays."""
    return Mock()


@pytest.fixture
def executor(no_sleep: Mock) -> RetryExecutor:
    """Retry executor with three attempts that never actually sleeps."""
    return RetryExecutor(RetryConfig(max_attempts=3, base_delay=1.0), sleep=no_sleep)


@pytest.fixture
def state_store(tmp_path: Path) -> JsonStateStore:
    """JSON state store in a temp directory."""
    return JsonStateStore(tmp_path / "state")


@pytest.fixture
def gateway(make_server_state: Callable[..., ServerState]) -> MagicMock:
    """Mocked remote gateway returning an empty server state."""
    mock = MagicMock()
    mock.fetch_server_state.return_value = make_server_state()
    return mock


@pytest.fixture
def make_service(
    gateway: MagicMock,
    state_store: JsonStateStore,
    executor: RetryExecutor,
) -> Callable[..., SyncService]:
    """Factory for a SyncService over the mocked gateway and temp store."""

    def factory(**overrides: Any) -> SyncService:
        kwargs: dict[str, Any] = {
            "gateway": gateway,
            "store": state_store,
            "guard": StaticConnectivityGuard(online=True),
            "executor": executor,
        }
        kwargs.update(overrides)
        return SyncService(**kwargs)

    return factory
