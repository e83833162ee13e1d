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
from yeelight_discovery import Device, DeviceConnectionError, open_connection

from conftest import make_headers

def _unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]

def test_connects_to_device():
    async def aconnect() -> Tuple[bool, bool, bool]:
        accepted: asyncio.Event = asyncio.Event()

        def on_client(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            accepted.set()
            writer.close()

        server = await asyncio.start_server(on_client, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        device = Device.from_headers(make_headers(), ("127.0.0.1", port))
        try:
            async with await device.connect() as connection:
                assert connection.location == device.location
                was_open = not connection.is_closed
                await asyncio.wait_for(accepted.wait(), 2.0)
            # connecting does not alter the device
            unchanged = device == Device.from_headers(make_headers(), ("127.0.0.1", port))
            return was_open, connection.is_closed, unchanged
        finally:
            server.close()
            await server.wait_closed()

    was_open, is_closed, unchanged = asyncio.run(aconnect())
    assert was_open
    assert is_closed
    assert unchanged

def test_connection_refused():
    port = _unused_port()

    async def aconnect() -> None:
        await open_connection(("127.0.0.1", port), timeout=2.0)

    with pytest.raises(DeviceConnectionError) as excinfo:
        asyncio.run(aconnect())
    assert isinstance(excinfo.value, ConnectionError)
    assert isinstance(excinfo.value.__cause__, OSError)

def test_close_is_idempotent():
    async def aconnect() -> bool:
        server = await asyncio.start_server(lambda r, w: w.close(), "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        try:
            connection = await open_connection(("127.0.0.1", port))
            connection.close()
            connection.close()
            await connection.aclose()
            return connection.is_closed
        finally:
            server.close()
            await server.wait_closed()

    assert asyncio.run(aconnect())
