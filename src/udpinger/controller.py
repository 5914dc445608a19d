import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Optional

from .collector import StatsCollector
from .models import ProbeResult, ProgressCallback, RunConfig, RunStats
from .scheduler import FixedRateScheduler

logger = logging.getLogger(__name__)

WorkerFactory = Callable[[int], Awaitable[ProbeResult]]


class TerminationController:
    """
    Owns the tasks of one run and decides when the run is finished.

    The run is finished when the scheduler has stopped dispatching and every
    dispatched worker task has reached a terminal state. ``await_completion``
    is the single join point; stats are only handed out after it.
    """

    def __init__(
        self,
        config: RunConfig,
        collector: StatsCollector,
        worker_factory: WorkerFactory,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        self.config = config
        self.collector = collector
        self.worker_factory = worker_factory
        self.progress_callback = progress_callback
        self._stop = asyncio.Event()
        self.scheduler = FixedRateScheduler(stop_event=self._stop)
        self._tasks: list[asyncio.Task] = []
        self._completed = 0

    def cancel(self) -> None:
        """Stop dispatching further probes. In-flight probes run to their deadline."""
        if not self._stop.is_set():
            logger.info("Cancellation requested; no further probes will be dispatched")
        self._stop.set()

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def _dispatch(self, seq: int) -> None:
        task = asyncio.create_task(self.worker_factory(seq), name=f"probe-{seq}")
        task.add_done_callback(self._on_done)
        self._tasks.append(task)

    def _on_done(self, task: asyncio.Task) -> None:
        self._completed += 1
        if self.progress_callback and not task.cancelled():
            self.progress_callback(self._completed, self.config.count)

    async def await_completion(self) -> RunStats:
        """Run the schedule, then block until every dispatched worker has finished."""
        try:
            await self.scheduler.start(self.config, self._dispatch)
        finally:
            # join whatever got dispatched, even if scheduling was interrupted
            results = await asyncio.gather(*self._tasks, return_exceptions=True)

        for r in results:
            if isinstance(r, BaseException):
                raise r

        stats = self.collector.snapshot()
        logger.debug(
            f"All {len(self._tasks)} workers joined: "
            f"{stats.success_count} succeeded, {stats.failure_count} failed"
        )
        return stats
