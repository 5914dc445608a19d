from typing import Optional, Sequence

from .models import ProbeResult, Summary


def render_header(host: str) -> str:
    return f"PING {host}"


def render_report(host: str, summary: Summary) -> str:
    lines = [
        f"--- {host} ping statistics ---",
        f"{summary.transmitted} transmitted, {summary.received} received, "
        f"{summary.loss_percent}% loss, time {summary.total_ms} ms",
    ]
    if summary.received:
        lines.append(f"rtt min/avg/max = {summary.min}/{summary.avg:.3f}/{summary.max}")
    else:
        lines.append("rtt min/avg/max = N/A")
    return "\n".join(lines)


def render_latency_histogram(latencies: Sequence[int], bins: int = 20) -> str:
    if not latencies:
        return "No latency data."
    lo, hi = min(latencies), max(latencies)
    if hi <= lo:
        return f"Histogram: single value {lo} ms"

    width = 40
    counts = [0] * bins
    for x in latencies:
        j = int((x - lo) / (hi - lo) * bins)
        if j == bins:
            j -= 1
        counts[j] += 1

    peak = max(counts)
    lines = []
    for i, c in enumerate(counts):
        left = lo + (hi - lo) * (i / bins)
        right = lo + (hi - lo) * ((i + 1) / bins)
        bar = "#" * max(1, int((c / peak) * width)) if c else ""
        lines.append(f"{left:8.1f}ms - {right:8.1f}ms | {bar} ({c})")
    return "RTT Histogram\n" + "\n".join(lines)


def render_timeline(
    results: Sequence[ProbeResult],
    start: Optional[float],
    width: int = 80,
) -> str:
    """One row per sequence: '=' spans a probe that got a reply, 'x' one that did not."""
    if not results or start is None:
        return "No timeline data."

    max_t = max(r.completion_timestamp - start for r in results)
    if max_t <= 0:
        max_t = 1.0

    lines = ["Probe Timeline (relative seconds)"]
    for r in sorted(results, key=lambda r: r.sequence):
        buf = [" "] * width
        sent = r.send_timestamp if r.send_timestamp is not None else r.completion_timestamp
        a = int((sent - start) / max_t * (width - 1))
        b = int((r.completion_timestamp - start) / max_t * (width - 1))
        a = min(max(0, a), width - 1)
        b = min(max(a, b), width - 1)
        mark = "=" if r.success else "x"
        for k in range(a, b + 1):
            buf[k] = mark
        lines.append(f"S{r.sequence:03d} |{''.join(buf)}|")
    lines.append(f"0s{' ' * (width - 6)}~ {max_t:.2f}s")
    return "\n".join(lines)
