"""
Indexer scheduler: one cycle at start, then one per interval, never overlapping.

Explicit two-state machine: IDLE -> PROCESSING -> IDLE. The loop runs in a
background thread (started from main.py or the API lifespan), waits for each
cycle to finish before arming the next wait, and contains every per-cycle
error so a failing cycle never stops the loop. Shutdown is cooperative via a
threading.Event.
"""

from __future__ import annotations

import threading
import time
from enum import Enum
from typing import Any

from interaction_indexer.core.exceptions import CycleInProgressError, RateLimitedError
from interaction_indexer.indexer.cycle import CycleResult, IndexerCycle
from interaction_indexer.indexer_logging import get_logger

logger = get_logger(__name__)

SHUTDOWN_JOIN_TIMEOUT_SEC = 15.0


class SchedulerState(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"


class IndexerScheduler:
    """Drives IndexerCycle.run() on a fixed cadence."""

    def __init__(self, cycle: IndexerCycle, interval_sec: float) -> None:
        if interval_sec <= 0:
            raise ValueError("interval_sec must be positive")
        self._cycle = cycle
        self._interval_sec = interval_sec
        self._lock = threading.Lock()
        self._state = SchedulerState.IDLE
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.cycle_count = 0
        self.error_count = 0
        self.last_result: CycleResult | None = None
        self.last_error: str | None = None
        self.last_run_at: float | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def interval_sec(self) -> float:
        return self._interval_sec

    def run_once(self) -> CycleResult:
        """
        Run one cycle now. Raises CycleInProgressError if one is already
        PROCESSING; cycle errors propagate to the caller.
        """
        if not self._lock.acquire(blocking=False):
            raise CycleInProgressError("an indexer cycle is already processing")
        try:
            self._state = SchedulerState.PROCESSING
            self.cycle_count += 1
            self.last_run_at = time.time()
            result = self._cycle.run(cycle_id=self.cycle_count)
            self.last_result = result
            self.last_error = None
            return result
        finally:
            self._state = SchedulerState.IDLE
            self._lock.release()

    def _run_guarded(self) -> None:
        try:
            self.run_once()
        except RateLimitedError as e:
            self.error_count += 1
            self.last_error = str(e)
            logger.warning("indexer_cycle_rate_limited", cycle=self.cycle_count, error=str(e))
        except Exception as e:
            self.error_count += 1
            self.last_error = str(e)
            logger.exception("indexer_cycle_failed", cycle=self.cycle_count, error=str(e))

    def run_forever(self, stop_event: threading.Event | None = None) -> None:
        """Block until stop_event (or stop()) is set; first cycle runs immediately."""
        stop_event = stop_event or self._stop_event
        logger.info(
            "indexer_scheduler_started",
            interval_sec=self._interval_sec,
            program_id=self._cycle.program_id,
        )
        while not stop_event.is_set():
            tick_start = time.monotonic()
            self._run_guarded()
            # Sleep until next tick; wake periodically to check stop_event
            deadline = tick_start + self._interval_sec
            while not stop_event.is_set() and time.monotonic() < deadline:
                stop_event.wait(timeout=min(1.0, max(0, deadline - time.monotonic())))
        logger.info("indexer_scheduler_stopped", cycles=self.cycle_count, errors=self.error_count)

    def start(self) -> threading.Thread:
        """Run the loop in a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run_forever,
            args=(self._stop_event,),
            name="indexer-scheduler",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def stop(self, timeout: float = SHUTDOWN_JOIN_TIMEOUT_SEC) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("indexer_scheduler_shutdown_timeout", timeout_sec=timeout)

    def status(self) -> dict[str, Any]:
        return {
            "state": self._state.value,
            "cycles": self.cycle_count,
            "errors": self.error_count,
            "lastRunAt": self.last_run_at,
            "lastCycle": self.last_result.to_dict() if self.last_result else None,
            "lastError": self.last_error,
        }
