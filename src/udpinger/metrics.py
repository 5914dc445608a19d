import math
import logging
from collections.abc import Callable, Sequence
from dataclasses import asdict

from .models import RunStats, Summary
from .utils import elapsed_ms

logger = logging.getLogger(__name__)


def loss_percent(transmitted: int, received: int) -> int:
    """floor((transmitted - received) * 100 / transmitted); 0 when nothing was sent."""
    if transmitted <= 0:
        return 0
    return (transmitted - received) * 100 // transmitted


def total_time_ms(stats: RunStats) -> int:
    if stats.overall_start is None or stats.overall_end is None:
        return 0
    return elapsed_ms(stats.overall_start, stats.overall_end)


def _percentile(sl: Sequence[int], p: float) -> int:
    n = len(sl)
    return sl[max(0, min(n - 1, int(p * (n - 1))))]


def compute_stats(
    stats: RunStats,
    metrics_callback: Callable[[dict], None] | None = None,
) -> Summary:
    transmitted = stats.transmitted
    received = stats.success_count
    delays = stats.ordered_delays
    logger.debug(f"Computing stats: transmitted={transmitted}, received={received}")

    summary = {
        "transmitted": transmitted,
        "received": received,
        "lost": transmitted - received,
        "loss_percent": loss_percent(transmitted, received),
        "total_ms": total_time_ms(stats),
        "min": None,
        "avg": None,
        "max": None,
        "std": None,
        "p50": None,
        "p90": None,
        "p99": None,
    }

    n = len(delays)
    if n == 0:
        logger.warning("No replies received; round-trip statistics unavailable.")
    else:
        mean = sum(delays) / n
        sum_sq = sum(x * x for x in delays)
        sl = sorted(delays)
        summary.update(
            {
                "min": sl[0],
                "avg": mean,
                "max": sl[-1],
                "std": math.sqrt(max(0.0, (sum_sq / n) - (mean * mean))),
                "p50": _percentile(sl, 0.50),
                "p90": _percentile(sl, 0.90),
                "p99": _percentile(sl, 0.99),
            }
        )
        logger.info(
            f"Stats computed: received={received}/{transmitted}, "
            f"avg={mean:.3f}ms, loss={summary['loss_percent']}%"
        )

    result = Summary(**summary)
    if metrics_callback:
        metrics_callback(asdict(result))
    return result
