import asyncio
import logging
from collections.abc import Callable
from typing import Optional

from .models import ConfigError, RunConfig

logger = logging.getLogger(__name__)

TickCallback = Callable[[int], None]


class FixedRateScheduler:
    """
    Fires ``on_tick(seq)`` for seq = 1..count at t0 + (seq - 1) * period.

    Tick times are computed from the start time, not from the previous tick,
    so a late tick is followed immediately by any ticks it fell behind on.
    ``on_tick`` must not block: it is expected to hand the probe off to its
    own task and return.
    """

    def __init__(self, stop_event: Optional[asyncio.Event] = None) -> None:
        self._stop = stop_event or asyncio.Event()
        self.dispatched = 0
        self.started_at: Optional[float] = None

    @staticmethod
    def validate(config: RunConfig) -> None:
        if config.count <= 0:
            raise ConfigError(f"count must be positive, got {config.count}")
        if config.period_ms <= 0:
            raise ConfigError(f"period must be positive, got {config.period_ms}")

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    async def start(self, config: RunConfig, on_tick: TickCallback) -> int:
        """Dispatch every tick, then return the number of ticks fired."""
        self.validate(config)
        loop = asyncio.get_running_loop()
        period = config.period_s
        t0 = loop.time()
        self.started_at = t0
        logger.debug(f"Scheduler started: count={config.count}, period={config.period_ms}ms")

        for seq in range(1, config.count + 1):
            if self._stop.is_set():
                break
            delay = t0 + (seq - 1) * period - loop.time()
            if delay > 0:
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=delay)
                    break
                except TimeoutError:
                    pass
            elif delay < -period:
                logger.debug(f"Tick {seq} is {-delay * 1000:.1f}ms late, catching up")
            on_tick(seq)
            self.dispatched += 1

        if self.dispatched < config.count:
            logger.info(f"Scheduler stopped early after {self.dispatched}/{config.count} ticks")
        else:
            logger.debug(f"Scheduler finished: {self.dispatched} ticks")
        return self.dispatched
