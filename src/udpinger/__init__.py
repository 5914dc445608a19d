__all__ = ["Pinger", "RunConfig", "RunStats", "StatsCollector", "compute_stats", "render_report"]


from .core import Pinger
from .collector import StatsCollector
from .metrics import compute_stats
from .models import RunConfig, RunStats
from .rendering import render_report
