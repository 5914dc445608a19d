import asyncio
import logging
import signal
import socket
import time

from .models import ConfigError

logger = logging.getLogger(__name__)

# ────────────────────────────────
# Time Helpers
# ────────────────────────────────


def now() -> float:
    return time.perf_counter()


def epoch_ms() -> int:
    return time.time_ns() // 1_000_000


def elapsed_ms(start: float, end: float) -> int:
    """Whole milliseconds between two monotonic readings, never negative."""
    return max(0, int((end - start) * 1000))


# ────────────────────────────────
# Host Resolution
# ────────────────────────────────


def check_port(port: int) -> None:
    # getaddrinfo overflows on out-of-range ints instead of rejecting them
    if not 0 < port < 65536:
        raise ConfigError(f"target_port must be in 1..65535, got {port}")


def _first_address(host: str, infos) -> str:
    if not infos:
        raise ConfigError(f"cannot resolve host {host!r}")
    address = infos[0][4][0]
    if address != host:
        logger.debug(f"Resolved {host} → {address}")
    return address


def resolve_host(host: str, port: int) -> str:
    """Resolve ``host`` to a numeric IPv4/IPv6 address usable for UDP."""
    check_port(port)
    try:
        infos = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
    except (socket.gaierror, UnicodeError) as e:
        raise ConfigError(f"cannot resolve host {host!r}: {e}") from e
    return _first_address(host, infos)


async def resolve_host_async(host: str, port: int) -> str:
    """Same as ``resolve_host`` without blocking the running event loop."""
    check_port(port)
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
    except (socket.gaierror, UnicodeError) as e:
        raise ConfigError(f"cannot resolve host {host!r}: {e}") from e
    return _first_address(host, infos)


# ────────────────────────────────
# Signal Handling
# ────────────────────────────────


class GracefulKiller:
    """Routes SIGINT/SIGTERM to a stop callback, once."""

    def __init__(self, on_stop):
        self.kill_now = False
        self._on_stop = on_stop
        self._previous = {}

    def install(self) -> None:
        for sig in (signal.SIGINT, signal.SIGTERM):
            self._previous[sig] = signal.signal(sig, self.exit_gracefully)

    def restore(self) -> None:
        for sig, handler in self._previous.items():
            signal.signal(sig, handler)
        self._previous.clear()

    def exit_gracefully(self, signum, frame):
        if self.kill_now:
            return
        print("\n[!] Received shutdown signal. Waiting for in-flight probes...")
        self.kill_now = True
        self._on_stop()
