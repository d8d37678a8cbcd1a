"""
Tests for SyncWorker scheduling and outcome classification.
"""

import threading
from unittest.mock import MagicMock

import pytest

from grocersync.core.sync.exceptions import (
    NetworkUnavailableError,
    RetriesExhaustedError,
    TransportError,
)
from grocersync.core.sync.models import SyncSummary
from grocersync.core.sync.worker import SyncWorker, WorkerOutcome


@pytest.fixture
def service() -> MagicMock:
    mock = MagicMock()
    mock.perform_full_sync.return_value = SyncSummary(timestamp="2024-01-01T00:00:00Z")
    return mock


class FakeEvent(threading.Event):
    """Event whose wait() records the timeout instead of blocking."""

    def __init__(self) -> None:
        super().__init__()
        self.waits: list[float] = []

    def wait(self, timeout: float | None = None) -> bool:
        self.waits.append(timeout or 0.0)
        return self.is_set()


class TestRunOnce:
    """Outcome classification for a single run."""

    def test_success(self, service: MagicMock) -> None:
        assert SyncWorker(service).run_once() is WorkerOutcome.SUCCESS

    def test_success_with_entity_errors(self, service: MagicMock) -> None:
        service.perform_full_sync.return_value = SyncSummary(
            timestamp="t", errors=["cart sync failed: boom"]
        )
        assert SyncWorker(service).run_once() is WorkerOutcome.SUCCESS

    def test_offline_retries(self, service: MagicMock) -> None:
        service.perform_full_sync.side_effect = NetworkUnavailableError()
        assert SyncWorker(service, max_run_attempts=0).run_once(5) is WorkerOutcome.RETRY

    def test_failure_retried_while_attempts_remain(self, service: MagicMock) -> None:
        service.perform_full_sync.side_effect = RetriesExhaustedError(3, TransportError("down"))
        worker = SyncWorker(service, max_run_attempts=3)

        assert worker.run_once(0) is WorkerOutcome.RETRY
        assert worker.run_once(2) is WorkerOutcome.RETRY
        assert worker.run_once(3) is WorkerOutcome.FAILURE

    def test_negative_attempts_rejected(self, service: MagicMock) -> None:
        with pytest.raises(ValueError):
            SyncWorker(service, max_run_attempts=-1)


class TestRunForever:
    """Loop scheduling."""

    def test_stops_after_max_cycles(self, service: MagicMock) -> None:
        stop = FakeEvent()

        runs = SyncWorker(service).run_forever(15.0, stop, max_cycles=3)

        assert runs == 3
        assert service.perform_full_sync.call_count == 3
        assert stop.waits == [15.0, 15.0]

    def test_stop_event_ends_loop(self, service: MagicMock) -> None:
        stop = FakeEvent()
        stop.set()

        assert SyncWorker(service).run_forever(15.0, stop) == 0
        service.perform_full_sync.assert_not_called()

    def test_retry_backoff_capped_at_interval(self, service: MagicMock) -> None:
        service.perform_full_sync.side_effect = NetworkUnavailableError()
        stop = FakeEvent()

        SyncWorker(service, retry_base_delay=2.0).run_forever(5.0, stop, max_cycles=4)

        assert stop.waits == [2.0, 4.0, 5.0]

    def test_long_offline_stretch_keeps_waiting(self, service: MagicMock) -> None:
        """Thousands of offline retries stay capped at the interval."""
        service.perform_full_sync.side_effect = NetworkUnavailableError()
        stop = FakeEvent()

        runs = SyncWorker(service).run_forever(15.0, stop, max_cycles=2000)

        assert runs == 2000
        assert len(stop.waits) == 1999
        assert stop.waits[:4] == [1.0, 2.0, 4.0, 8.0]
        assert set(stop.waits[4:]) == {15.0}

    def test_failed_cycle_resets_attempts(self, service: MagicMock) -> None:
        service.perform_full_sync.side_effect = [
            TransportError("down"),
            TransportError("down"),
            SyncSummary(timestamp="t"),
        ]
        stop = FakeEvent()

        SyncWorker(service, max_run_attempts=1, retry_base_delay=1.0).run_forever(
            10.0, stop, max_cycles=3
        )

        # retry after 1s, then the cycle fails and waits the full interval
        assert stop.waits == [1.0, 10.0]

    def test_interval_must_be_positive(self, service: MagicMock) -> None:
        with pytest.raises(ValueError, match="interval must be positive"):
            SyncWorker(service).run_forever(0, threading.Event())
