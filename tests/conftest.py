#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

import asyncio
import socket

import pytest

from yeelight_discovery.internal_types import *
from yeelight_discovery import YeeClient

DEVICE_ADDR: HostAndPort = ("192.168.0.42", 1234)

def make_headers(**overrides: Optional[str]) -> Dict[str, str]:
    """A complete, well-formed set of advertisement headers. Passing name=None removes a header."""
    headers = {
        "id": "0x1234",
        "model": "floor",
        "fw_ver": "40",
        "power": "on",
        "support": "get_power set_power get_rgb set_rgb",
        "bright": "34",
        "color_mode": "2",
        "ct": "0",
        "rgb": "657930",
        "hue": "314",
        "sat": "12",
        "name": "room_light",
    }
    for name, value in overrides.items():
        if value is None:
            headers.pop(name, None)
        else:
            headers[name] = value
    return headers

def make_advertisement(
        headers: Optional[Mapping[str, str]]=None,
        statement: str="HTTP/1.1 200 OK",
        extra_headers: Optional[Mapping[str, str]]=None,
      ) -> bytes:
    """Encode headers as a device would in its response to a discovery query."""
    if headers is None:
        headers = make_headers()
    lines = [ statement, "Cache-Control: max-age=3600", "Ext:" ]
    if not extra_headers is None:
        lines.extend(f"{k}: {v}" for k, v in extra_headers.items())
    lines.extend(f"{k}: {v}" for k, v in headers.items())
    return ("\r\n".join(lines) + "\r\n").encode('utf-8')

class FakeDevices(asyncio.DatagramProtocol):
    """Stands in for the lights on a network segment. Records every query it receives and
       answers each one with the configured advertisements."""

    advertisements: List[bytes]
    late_advertisements: List[Tuple[float, bytes]]
    queries: List[bytes]
    transport: Optional[asyncio.DatagramTransport] = None

    def __init__(
            self,
            advertisements: Iterable[bytes]=(),
            late_advertisements: Iterable[Tuple[float, bytes]]=(),
          ):
        self.advertisements = list(advertisements)
        self.late_advertisements = list(late_advertisements)
        self.queries = []

    def connection_made(self, transport):
        self.transport = transport

    def datagram_received(self, data: bytes, addr: Tuple[str, int]):
        self.queries.append(data)
        assert not self.transport is None
        for advertisement in self.advertisements:
            self.transport.sendto(advertisement, addr)
        loop = asyncio.get_running_loop()
        for delay, advertisement in self.late_advertisements:
            loop.call_later(delay, self._send_late, advertisement, addr)

    def _send_late(self, advertisement: bytes, addr: Tuple[str, int]) -> None:
        if not self.transport is None and not self.transport.is_closing():
            self.transport.sendto(advertisement, addr)

    @property
    def address(self) -> HostAndPort:
        assert not self.transport is None
        return self.transport.get_extra_info('sockname')

    async def start(self) -> None:
        loop = asyncio.get_running_loop()
        await loop.create_datagram_endpoint(lambda: self, local_addr=("127.0.0.1", 0))

    def close(self) -> None:
        if not self.transport is None:
            self.transport.close()

class LoopbackClient(YeeClient):
    """A YeeClient that talks to FakeDevices over loopback instead of joining the multicast group."""

    fake_devices: FakeDevices

    def __init__(self, fake_devices: FakeDevices, **kwargs: Any):
        self.fake_devices = fake_devices
        super().__init__(local_port=0, **kwargs)

    def create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        sock.bind(("127.0.0.1", 0))
        sock.setblocking(False)
        return sock

    @property
    def search_destination(self) -> HostAndPort:
        return self.fake_devices.address

async def run_discovery(fake_devices: FakeDevices, timeout: float=0.5) -> List[Any]:
    await fake_devices.start()
    try:
        async with LoopbackClient(fake_devices) as client:
            return await client.discover(timeout)
    finally:
        fake_devices.close()

@pytest.fixture
def headers() -> Dict[str, str]:
    return make_headers()
