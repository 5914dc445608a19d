import asyncio
import logging
from collections.abc import Callable
from typing import Optional

from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from .collector import StatsCollector
from .controller import TerminationController
from .metrics import compute_stats
from .models import MetricsCallback, ProbeResult, ProgressCallback, RunConfig, RunStats, Summary
from .persistence import ResultWriter
from .rendering import render_header, render_latency_histogram, render_report, render_timeline
from .utils import GracefulKiller
from .worker import ProbeWorker

logger = logging.getLogger(__name__)


class Pinger:
    """One probe run against one target. Build a new instance per run."""

    def __init__(
        self,
        config: RunConfig,
        emit: Callable[[str], None] = print,
        metrics_callback: MetricsCallback | None = None,
        progress_callback: ProgressCallback | None = None,
        use_progress_bar: bool = False,
        show_histogram: bool = False,
        show_timeline: bool = False,
        histogram_bins: int = 20,
        timeline_width: int = 80,
        json_out: str | None = None,
        handle_signals: bool = False,
    ) -> None:
        self.config = config
        self.emit = emit
        self.metrics_callback = metrics_callback
        self.progress_callback = progress_callback
        self.use_progress_bar = use_progress_bar
        self.show_histogram = show_histogram
        self.show_timeline = show_timeline
        self.histogram_bins = histogram_bins
        self.timeline_width = timeline_width
        self.writer = ResultWriter(json_out) if json_out else None
        self.handle_signals = handle_signals

        self.collector = StatsCollector()
        self.controller = TerminationController(
            config,
            self.collector,
            self._probe,
            progress_callback=self._on_progress,
        )
        self.stats: Optional[RunStats] = None
        self.summary: Optional[Summary] = None
        self._progress: Optional[Progress] = None
        self._task_id = None

        logger.info(
            f"Initialized Pinger for {config.target_address}:{config.target_port}, "
            f"count={config.count}, period={config.period_ms}ms, timeout={config.timeout_ms}ms"
        )

    def _probe(self, seq: int):
        return ProbeWorker(self.config, seq, self.collector, emit=self.emit).run()

    def _on_progress(self, completed: int, total: int) -> None:
        if self._progress is not None and self._task_id is not None:
            self._progress.advance(self._task_id)
        if self.progress_callback:
            self.progress_callback(completed, total)

    def cancel(self) -> None:
        self.controller.cancel()

    @property
    def results(self) -> tuple[ProbeResult, ...]:
        return self.stats.results if self.stats else ()

    async def run(self) -> RunStats:
        self.emit(render_header(self.config.target_address))

        killer = None
        if self.handle_signals:
            loop = asyncio.get_running_loop()
            killer = GracefulKiller(lambda: loop.call_soon_threadsafe(self.cancel))
            killer.install()

        if self.use_progress_bar:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
            )
            self._progress.start()
            self._task_id = self._progress.add_task("[cyan]Probing...", total=self.config.count)

        try:
            stats = await self.controller.await_completion()
        finally:
            if self._progress:
                self._progress.stop()
            if killer:
                killer.restore()

        self.stats = stats
        self.summary = compute_stats(stats, self.metrics_callback)

        self.emit(render_report(self.config.target_address, self.summary))
        if self.show_histogram:
            self.emit(render_latency_histogram(stats.ordered_delays, self.histogram_bins))
        if self.show_timeline:
            self.emit(render_timeline(stats.results, stats.overall_start, self.timeline_width))

        if self.writer:
            self.writer.save(self.config, self.summary, stats.results)

        logger.info(
            f"Run completed: {self.summary.received}/{self.summary.transmitted} replies, "
            f"loss={self.summary.loss_percent}%"
        )
        return stats
