from dataclasses import dataclass, field
from typing import Optional, Any
from collections.abc import Callable


class PingError(Exception):
    """Base class for every error raised by udpinger."""


class ConfigError(PingError, ValueError):
    """Invalid run parameters; raised before anything is scheduled."""


class ProbeTimeout(PingError):
    """No reply arrived before the probe deadline."""


class TransportError(PingError):
    """Send or receive failed for a reason other than the deadline."""


@dataclass(frozen=True)
class RunConfig:
    target_address: str
    target_port: int
    count: int
    period_ms: int
    timeout_ms: int

    def __post_init__(self) -> None:
        if not self.target_address:
            raise ConfigError("target_address must not be empty")
        if not 0 < self.target_port < 65536:
            raise ConfigError(f"target_port must be in 1..65535, got {self.target_port}")
        if self.count <= 0:
            raise ConfigError(f"count must be positive, got {self.count}")
        if self.period_ms <= 0:
            raise ConfigError(f"period must be positive, got {self.period_ms}")
        if self.timeout_ms < 0:
            raise ConfigError(f"timeout must not be negative, got {self.timeout_ms}")

    @property
    def period_s(self) -> float:
        return self.period_ms / 1000.0

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000.0

    @property
    def target(self) -> tuple[str, int]:
        return self.target_address, self.target_port


@dataclass(frozen=True)
class ProbeRequest:
    sequence: int
    send_timestamp: float  # monotonic seconds
    send_epoch_ms: int  # wall clock, only used in the payload

    def encode(self) -> bytes:
        return f"PING {self.sequence} {self.send_epoch_ms}\r\n".encode("ascii")


# Terminal outcomes of a probe
OUTCOME_REPLY = "reply"
OUTCOME_TIMEOUT = "timeout"
OUTCOME_TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class ProbeResult:
    sequence: int
    success: bool
    completion_timestamp: float
    latency_ms: Optional[int] = None
    outcome: str = OUTCOME_REPLY
    send_timestamp: Optional[float] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if self.success != (self.latency_ms is not None):
            raise ValueError("latency_ms must be present exactly when the probe succeeded")
        if self.latency_ms is not None and self.latency_ms < 0:
            raise ValueError(f"latency_ms must not be negative, got {self.latency_ms}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence": self.sequence,
            "success": self.success,
            "latency_ms": self.latency_ms,
            "outcome": self.outcome,
            "send_timestamp": self.send_timestamp,
            "completion_timestamp": self.completion_timestamp,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProbeResult":
        return cls(
            sequence=data["sequence"],
            success=data["success"],
            completion_timestamp=data["completion_timestamp"],
            latency_ms=data.get("latency_ms"),
            outcome=data.get("outcome", OUTCOME_REPLY),
            send_timestamp=data.get("send_timestamp"),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class RunStats:
    """Final, read-only view of a run. Produced after the completion barrier."""

    ordered_delays: tuple[int, ...]
    success_count: int
    overall_start: float | None
    overall_end: float | None
    results: tuple[ProbeResult, ...] = field(default_factory=tuple)

    @property
    def transmitted(self) -> int:
        return len(self.results)

    @property
    def failure_count(self) -> int:
        return self.transmitted - self.success_count


@dataclass
class Summary:
    transmitted: int
    received: int
    lost: int
    loss_percent: int
    total_ms: int
    min: int | None
    avg: float | None
    max: int | None
    std: float | None
    p50: int | None
    p90: int | None
    p99: int | None


# Metrics callback: callable accepting summary dict
MetricsCallback = Callable[[dict[str, Any]], None]

# Called with (completed, total) each time a probe reaches a terminal state
ProgressCallback = Callable[[int, int], None]
