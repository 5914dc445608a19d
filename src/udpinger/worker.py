import asyncio
import contextlib
import logging
import socket
from collections.abc import Callable

from .collector import StatsCollector
from .models import (
    OUTCOME_REPLY,
    OUTCOME_TIMEOUT,
    OUTCOME_TRANSPORT_ERROR,
    ProbeRequest,
    ProbeResult,
    ProbeTimeout,
    RunConfig,
    TransportError,
)
from .utils import elapsed_ms, epoch_ms, now

logger = logging.getLogger(__name__)

RECV_BUFFER = 1024


def format_pong(host: str, seq: int, latency_ms: int) -> str:
    return f"PONG {host}: seq={seq} time={latency_ms} ms"


class ProbeWorker:
    """
    Sends one probe and waits for one reply.

    Each worker owns a private UDP socket for the lifetime of its probe so
    concurrent probes never read each other's replies. The socket is closed
    whatever the outcome. The worker reports exactly one ProbeResult into the
    collector and returns it.
    """

    def __init__(
        self,
        config: RunConfig,
        sequence: int,
        collector: StatsCollector,
        emit: Callable[[str], None] = print,
    ) -> None:
        self.config = config
        self.sequence = sequence
        self.collector = collector
        self.emit = emit

    def _open_socket(self) -> socket.socket:
        family = socket.AF_INET6 if ":" in self.config.target_address else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_DGRAM)
        sock.setblocking(False)
        return sock

    async def _exchange(self, sock: socket.socket, request: ProbeRequest) -> float:
        """Send the request and wait for one reply; returns the receive time."""
        loop = asyncio.get_running_loop()
        try:
            await loop.sock_sendall(sock, request.encode())
        except OSError as e:
            raise TransportError(f"send failed: {e}") from e

        try:
            await asyncio.wait_for(loop.sock_recv(sock, RECV_BUFFER), timeout=self.config.timeout_s)
        except TimeoutError as e:
            raise ProbeTimeout(f"no reply within {self.config.timeout_ms}ms") from e
        except OSError as e:
            raise TransportError(f"receive failed: {e}") from e
        return now()

    async def run(self) -> ProbeResult:
        seq = self.sequence
        host = self.config.target_address
        send_ts = None
        with contextlib.ExitStack() as stack:
            try:
                try:
                    sock = stack.enter_context(self._open_socket())
                    sock.connect(self.config.target)
                except OSError as e:
                    raise TransportError(f"socket setup failed: {e}") from e

                request = ProbeRequest(sequence=seq, send_timestamp=now(), send_epoch_ms=epoch_ms())
                send_ts = request.send_timestamp
                if seq == 1:
                    self.collector.mark_start(send_ts)
                logger.debug(f"[seq={seq}] Sending to {host}:{self.config.target_port}")

                received_ts = await self._exchange(sock, request)
                latency = elapsed_ms(send_ts, received_ts)
                result = ProbeResult(
                    sequence=seq,
                    success=True,
                    latency_ms=latency,
                    completion_timestamp=received_ts,
                    outcome=OUTCOME_REPLY,
                    send_timestamp=send_ts,
                )
                self.emit(format_pong(host, seq, latency))

            except ProbeTimeout as e:
                logger.info(f"[seq={seq}] Timeout: {e}")
                result = self._failure(OUTCOME_TIMEOUT, send_ts, str(e))

            except TransportError as e:
                logger.warning(f"[seq={seq}] Transport error to {host}: {e}")
                result = self._failure(OUTCOME_TRANSPORT_ERROR, send_ts, str(e))

        self.collector.record(result)
        return result

    def _failure(self, outcome: str, send_ts: float | None, error: str) -> ProbeResult:
        ts = now()
        if send_ts is None and self.sequence == 1:
            # the probe never got as far as sending; its dispatch still starts the run
            self.collector.mark_start(ts)
        return ProbeResult(
            sequence=self.sequence,
            success=False,
            completion_timestamp=ts,
            outcome=outcome,
            send_timestamp=send_ts,
            error=error,
        )
