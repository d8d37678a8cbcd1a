"""
Connectivity checks performed before any network attempt.

A guard that reports offline makes every sync entry point fail fast with
NetworkUnavailableError: no request is made and nothing is retried.
"""

from __future__ import annotations

import logging
import socket
from typing import Protocol, runtime_checkable
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


@runtime_checkable
class ConnectivityGuard(Protocol):
    """Reports whether the network is usable right now."""

    def is_available(self) -> bool:
        ...


class StaticConnectivityGuard:
    """A guard with a fixed answer, for embedding hosts that track the network themselves."""

    def __init__(self, online: bool = True) -> None:
        self.online = online

    def is_available(self) -> bool:
        return self.online


class ProbeConnectivityGuard:
    """
    Probes the API host with a TCP connect.

    The device counts as online only if the connection opens within the
    probe timeout.

    Example:
        >>> guard = ProbeConnectivityGuard.from_url("https://api.example.com")
        >>> guard.is_available()
        True
    """

    def __init__(self, host: str, port: int = 443, timeout: float = 3.0) -> None:
        """
        Initialize the probe.

        Args:
            host: Hostname to connect to
            port: TCP port to connect to
            timeout: Connect timeout in seconds
        """
        if not host:
            raise ValueError("host must not be empty")
        self.host = host
        self.port = port
        self.timeout = timeout

    @classmethod
    def from_url(cls, url: str, timeout: float = 3.0) -> ProbeConnectivityGuard:
        """Build a probe for the host and port of a base URL."""
        parsed = urlparse(url)
        host = parsed.hostname or ""
        port = parsed.port or (443 if parsed.scheme == "https" else 80)
        return cls(host, port, timeout)

    def is_available(self) -> bool:
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout):
                return True
        except OSError as e:
            logger.debug("Connectivity probe to %s:%s failed: %s", self.host, self.port, e)
            return False


__all__ = [
    "ConnectivityGuard",
    "StaticConnectivityGuard",
    "ProbeConnectivityGuard",
]
