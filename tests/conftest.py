import asyncio
import contextlib
import socket

import pytest


class EchoProtocol(asyncio.DatagramProtocol):
    """Replies to "PING <seq> ..." datagrams, except for dropped sequences."""

    def __init__(self, drop=(), delays=None):
        self.drop = set(drop)
        self.delays = delays or {}
        self.received: list[int] = []
        self.transport = None

    def connection_made(self, transport):
        self.transport = transport

    def datagram_received(self, data, addr):
        seq = int(data.decode("ascii").split()[1])
        self.received.append(seq)
        if seq in self.drop:
            return
        reply = data.replace(b"PING", b"PONG", 1)
        delay = self.delays.get(seq, 0)
        if delay:
            asyncio.get_running_loop().call_later(delay, self.transport.sendto, reply, addr)
        else:
            self.transport.sendto(reply, addr)


@pytest.fixture
def echo_responder():
    """Factory for an in-loop UDP echo responder: ``async with echo_responder(drop=...) as (port, proto)``."""

    @contextlib.asynccontextmanager
    async def start(drop=(), delays=None):
        loop = asyncio.get_running_loop()
        transport, protocol = await loop.create_datagram_endpoint(
            lambda: EchoProtocol(drop, delays),
            local_addr=("127.0.0.1", 0),
        )
        try:
            yield transport.get_extra_info("sockname")[1], protocol
        finally:
            transport.close()

    return start


@pytest.fixture
def closed_port():
    """A loopback UDP port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    return port
