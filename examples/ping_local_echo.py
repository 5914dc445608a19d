"""
Quick sanity run: starts a UDP echo responder on localhost that drops every
third probe, then pings it.
Run: python examples/ping_local_echo.py
"""
import asyncio

from udpinger import Pinger, RunConfig


class LossyEcho(asyncio.DatagramProtocol):
    def connection_made(self, transport):
        self.transport = transport

    def datagram_received(self, data, addr):
        seq = int(data.split()[1])
        if seq % 3:
            self.transport.sendto(data, addr)


async def main():
    loop = asyncio.get_running_loop()
    transport, _ = await loop.create_datagram_endpoint(LossyEcho, local_addr=("127.0.0.1", 0))
    port = transport.get_extra_info("sockname")[1]
    try:
        config = RunConfig("127.0.0.1", port, count=10, period_ms=100, timeout_ms=250)
        pinger = Pinger(config, show_histogram=True, show_timeline=True, timeline_width=60)
        await pinger.run()
        print("\nSummary:", pinger.summary)
    finally:
        transport.close()

if __name__ == "__main__":
    asyncio.run(main())
