"""
Periodic background sync.

SyncWorker runs SyncService.perform_full_sync on the calling thread,
which should be a background thread or process. Each cycle decides whether
the run succeeded, should be retried, or has failed for this cycle:

- success: a summary came back, even if some entities reported errors
- retry: the device was offline, or a run failed and attempts remain
- failure: a run failed and the attempts for this cycle are used up

Example:
    >>> worker = SyncWorker(service)
    >>> stop = threading.Event()
    >>> threading.Thread(target=worker.run_forever, args=(15.0, stop), daemon=True).start()
"""

from __future__ import annotations

import logging
import threading
from enum import Enum

from grocersync.core.sync.exceptions import NetworkUnavailableError
from grocersync.core.sync.service import SyncService

logger = logging.getLogger(__name__)

# 2**30 seconds is longer than any sync interval
MAX_BACKOFF_EXPONENT = 30


class WorkerOutcome(str, Enum):
    """Result of one worker run."""

    SUCCESS = "success"
    RETRY = "retry"
    FAILURE = "failure"


class SyncWorker:
    """Runs full syncs on a schedule, one at a time."""

    def __init__(
        self,
        service: SyncService,
        max_run_attempts: int = 3,
        retry_base_delay: float = 1.0,
    ) -> None:
        """
        Initialize the worker.

        Args:
            service: Sync service to drive
            max_run_attempts: Failed runs tolerated per cycle before giving up
            retry_base_delay: First wait in seconds after a run asks for a retry
        """
        if max_run_attempts < 0:
            raise ValueError("max_run_attempts must be non-negative")
        self.service = service
        self.max_run_attempts = max_run_attempts
        self.retry_base_delay = retry_base_delay

    def run_once(self, run_attempt: int = 0) -> WorkerOutcome:
        """
        Perform one full sync and classify the result.

        Args:
            run_attempt: Number of earlier failed runs in this cycle
        """
        logger.info("Starting sync work (attempt %d)", run_attempt + 1)

        try:
            summary = self.service.perform_full_sync()
        except NetworkUnavailableError as e:
            logger.warning("Sync skipped: %s", e)
            return WorkerOutcome.RETRY
        except Exception as e:
            logger.error("Sync failed: %s", e)
            if run_attempt < self.max_run_attempts:
                return WorkerOutcome.RETRY
            logger.error("Max retries reached, giving up for this sync cycle")
            return WorkerOutcome.FAILURE

        logger.info(
            "Sync completed: cart=%s (%s), orders=%s (%s), profile=%s (%s)",
            summary.cart_synced,
            summary.cart_action,
            summary.orders_synced,
            summary.orders_action,
            summary.profile_synced,
            summary.profile_action,
        )
        if summary.errors:
            logger.warning("Sync completed with %d errors:", len(summary.errors))
            for error in summary.errors:
                logger.warning("  - %s", error)

        return WorkerOutcome.SUCCESS

    def run_forever(
        self,
        interval: float,
        stop_event: threading.Event,
        max_cycles: int | None = None,
    ) -> int:
        """
        Sync every ``interval`` seconds until ``stop_event`` is set.

        A run that asks for a retry is repeated after an exponential backoff
        capped at ``interval``. A failed cycle resets the attempt counter and
        waits a full interval.

        Args:
            interval: Seconds between cycles
            stop_event: Set to stop the loop
            max_cycles: Stop after this many runs (None for no limit)

        Returns:
            Number of runs performed
        """
        if interval <= 0:
            raise ValueError("interval must be positive")

        runs = 0
        attempt = 0
        while not stop_event.is_set():
            outcome = self.run_once(attempt)
            runs += 1
            if max_cycles is not None and runs >= max_cycles:
                break

            if outcome is WorkerOutcome.RETRY:
                exponent = min(attempt, MAX_BACKOFF_EXPONENT)
                wait = min(interval, self.retry_base_delay * (2**exponent))
                attempt += 1
            else:
                wait = interval
                attempt = 0

            stop_event.wait(wait)

        return runs


__all__ = ["SyncWorker", "WorkerOutcome"]
