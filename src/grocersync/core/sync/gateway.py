"""
Remote state gateway for the grocery platform's sync API.

The gateway makes exactly one request per call and classifies failures;
retry and connectivity checks are the caller's job (see SyncService).

API Endpoints:
- State:   GET  {base_url}/api/sync/state
- Resolve: POST {base_url}/api/sync/resolve

State response format:
{
  "success": true,
  "data": {
    "cart": {"items": [...], "total_items": 3, "total_price": 9.5,
             "updated_at": "2025-01-30T10:00:00.000Z", "checksum": "..."},
    "orders": {"items": [...], "count": 2,
               "updated_at": "2025-01-30T09:00:00.000Z", "checksum": "..."},
    "profile": {"data": {...} | null, "updated_at": "..."},
    "timestamp": "2025-01-30T10:00:10.000Z"
  }
}

Resolve request/response format:
{"entity": "cart", "local_state": {"items": [...]}, "local_timestamp": "..."}
{"success": true, "data": {"resolved_state": {...}, "action": "local_wins",
                           "timestamp": "..."}}

Error classification:
- Connection errors, timeouts and HTTP 5xx raise TransportError (retryable)
- HTTP 4xx, ``success: false`` and malformed bodies raise ServerRejectedError
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, ValidationError

from grocersync.core.sync.checksum import UNIX_EPOCH, compute_checksum
from grocersync.core.sync.exceptions import ServerRejectedError, TransportError
from grocersync.core.sync.models import (
    CartItem,
    CartSnapshot,
    ConflictRequest,
    ConflictResolution,
    OrderRecord,
    OrdersSnapshot,
    ProfileSnapshot,
    ServerState,
    UserProfile,
)

logger = logging.getLogger(__name__)

STATE_PATH = "/api/sync/state"
RESOLVE_PATH = "/api/sync/resolve"


class RemoteStateGateway(Protocol):
    """Network boundary to the server's authoritative state."""

    def fetch_server_state(self) -> ServerState:
        ...

    def resolve_conflict(self, request: ConflictRequest) -> ConflictResolution:
        ...


class _CartWire(BaseModel):
    items: list[CartItem] = []
    updated_at: str = UNIX_EPOCH


class _OrdersWire(BaseModel):
    items: list[OrderRecord] = []
    updated_at: str = UNIX_EPOCH


class _ProfileWire(BaseModel):
    data: UserProfile | None = None
    updated_at: str = UNIX_EPOCH


class _StateWire(BaseModel):
    cart: _CartWire
    orders: _OrdersWire
    profile: _ProfileWire = _ProfileWire()
    timestamp: str = ""


class HttpStateGateway:
    """
    RemoteStateGateway backed by httpx.

    Checksums of the returned snapshots are computed client-side with the
    canonical checksum function, so they compare cleanly with the checksums
    the local store writes.

    Example:
        >>> with HttpStateGateway("https://api.example.com", access_token="...") as gw:
        ...     state = gw.fetch_server_state()
        ...     state.cart.checksum
    """

    def __init__(
        self,
        base_url: str,
        access_token: str | None = None,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        """
        Initialize the gateway.

        Args:
            base_url: API base URL (e.g. "https://api.example.com")
            access_token: Bearer token sent with every request
            timeout: Request timeout in seconds
            client: Pre-built httpx client (its lifetime stays with the caller)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        self._headers = {"Accept": "application/json"}
        if access_token:
            self._headers["Authorization"] = f"Bearer {access_token}"

        if client is None:
            self._client = httpx.Client(base_url=self.base_url, timeout=timeout)
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False

    def __enter__(self) -> HttpStateGateway:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying client if this gateway created it."""
        if self._owns_client:
            self._client.close()

    def fetch_server_state(self) -> ServerState:
        """
        Fetch the authoritative snapshot of cart, orders and profile.

        Raises:
            TransportError: On connection errors, timeouts or HTTP 5xx
            ServerRejectedError: On HTTP 4xx or an unexpected body
        """
        data = self._request("GET", STATE_PATH)

        try:
            wire = _StateWire.model_validate(data)
        except ValidationError as e:
            raise ServerRejectedError(
                "Malformed sync state response",
                url=self._url(STATE_PATH),
                errors=e.error_count(),
            ) from e

        profile_data = wire.profile.data
        state = ServerState(
            cart=CartSnapshot(
                data=wire.cart.items,
                updated_at=wire.cart.updated_at,
                checksum=compute_checksum(wire.cart.items),
            ),
            orders=OrdersSnapshot(
                data=wire.orders.items,
                updated_at=wire.orders.updated_at,
                checksum=compute_checksum(wire.orders.items),
            ),
            profile=ProfileSnapshot(
                data=profile_data,
                updated_at=wire.profile.updated_at,
                checksum=compute_checksum(profile_data) if profile_data is not None else "",
            ),
            timestamp=wire.timestamp,
        )

        logger.debug(
            "Fetched server state: cart=%d items (%s), orders=%d (%s)",
            len(state.cart.data),
            state.cart.checksum,
            len(state.orders.data),
            state.orders.checksum,
        )
        return state

    def resolve_conflict(self, request: ConflictRequest) -> ConflictResolution:
        """
        Submit local state for the server to adjudicate.

        Raises:
            TransportError: On connection errors, timeouts or HTTP 5xx
            ServerRejectedError: On HTTP 4xx or an unexpected body
        """
        data = self._request("POST", RESOLVE_PATH, json=request.to_wire())

        try:
            resolution = ConflictResolution.model_validate(data)
        except ValidationError as e:
            raise ServerRejectedError(
                "Malformed conflict resolution response",
                url=self._url(RESOLVE_PATH),
                entity=request.entity.value,
            ) from e

        logger.debug("Resolved conflict for %s: action=%s", request.entity.value, resolution.action.value)
        return resolution

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """
        Make one request and return the ``data`` member of a successful body.

        Raises:
            TransportError: On transient failures
            ServerRejectedError: On rejections
        """
        url = self._url(path)
        try:
            response = self._client.request(method, url, headers=self._headers, **kwargs)
        except httpx.TimeoutException as e:
            raise TransportError(f"Request to {url} timed out", url=url, timeout=self.timeout) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Network error calling {url}: {e}", url=url) from e

        status = response.status_code
        if status >= 500:
            raise TransportError(f"HTTP {status} from {url}", url=url, status_code=status)
        if status >= 400:
            raise ServerRejectedError(
                f"HTTP {status}: {response.reason_phrase}",
                status_code=status,
                url=url,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ServerRejectedError("Invalid JSON in response", status_code=status, url=url) from e

        if not isinstance(body, dict) or not body.get("success"):
            error = body.get("error") if isinstance(body, dict) else None
            raise ServerRejectedError(
                "Server returned unsuccessful response",
                status_code=status,
                url=url,
                error=error,
            )

        return body.get("data")


__all__ = [
    "RemoteStateGateway",
    "HttpStateGateway",
    "STATE_PATH",
    "RESOLVE_PATH",
]
