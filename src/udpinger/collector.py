import logging
import threading

from .models import OUTCOME_TIMEOUT, ProbeResult, RunStats

logger = logging.getLogger(__name__)


class StatsCollector:
    """
    Accumulates probe outcomes reported by concurrently running workers.

    Every mutation goes through a single lock, so the collector is safe to
    share between asyncio tasks and plain threads alike. Once the run's
    completion barrier has been passed, call ``snapshot()`` and treat the
    returned ``RunStats`` as the immutable result.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._delays: list[int] = []
        self._success_count = 0
        self._overall_start: float | None = None
        self._overall_end: float | None = None
        self._results: list[ProbeResult] = []
        self._seen: set[int] = set()

    def mark_start(self, ts: float) -> bool:
        """Set the run start time if it is still unset. Returns True if it was set."""
        with self._lock:
            if self._overall_start is not None:
                return False
            self._overall_start = ts
            logger.debug(f"Run start marked at {ts:.6f}")
            return True

    def record_success(self, seq: int, latency_ms: int, ts: float) -> None:
        if latency_ms < 0:
            raise ValueError(f"latency must not be negative (seq={seq}, latency={latency_ms})")
        self.record(ProbeResult(sequence=seq, success=True, latency_ms=latency_ms, completion_timestamp=ts))

    def record_failure(self, seq: int, ts: float, outcome: str = OUTCOME_TIMEOUT) -> None:
        self.record(ProbeResult(sequence=seq, success=False, completion_timestamp=ts, outcome=outcome))

    def record(self, result: ProbeResult) -> None:
        """Record one terminal ProbeResult. Each sequence may be reported once."""
        with self._lock:
            if result.sequence in self._seen:
                raise ValueError(f"sequence {result.sequence} already recorded")
            self._seen.add(result.sequence)
            self._results.append(result)
            if result.success:
                self._apply_success(result.latency_ms, result.completion_timestamp)
            else:
                self._advance_end(result.completion_timestamp)
        logger.debug(f"seq={result.sequence} recorded ({result.outcome})")

    # The helpers below expect the caller to hold the lock.

    def _apply_success(self, latency_ms: int, ts: float) -> None:
        self._delays.append(latency_ms)
        self._success_count += 1
        self._advance_end(ts)

    def _advance_end(self, ts: float) -> None:
        if self._overall_end is None or ts > self._overall_end:
            self._overall_end = ts

    @property
    def completed(self) -> int:
        with self._lock:
            return len(self._results)

    def snapshot(self) -> RunStats:
        with self._lock:
            return RunStats(
                ordered_delays=tuple(self._delays),
                success_count=self._success_count,
                overall_start=self._overall_start,
                overall_end=self._overall_end,
                results=tuple(self._results),
            )
