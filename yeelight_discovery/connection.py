#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
DeviceConnection -- a control stream to a discovered device.

Discovery never opens connections. A caller that wants to control a device opens a
DeviceConnection explicitly, and owns it until it is closed. No command encoding is
done here; the connection exposes the underlying asyncio streams.
"""

from __future__ import annotations

import asyncio

from .internal_types import *
from .pkg_logging import logger
from .exceptions import DeviceConnectionError
from .constants import DEFAULT_CONNECT_TIMEOUT
from .util import format_host_and_port

class DeviceConnection(AsyncContextManager['DeviceConnection']):
    """An open TCP control stream to a device."""

    location: HostAndPort
    """The (ipv4_address, port) that the connection was opened to."""

    reader: asyncio.StreamReader
    writer: asyncio.StreamWriter

    def __init__(self, location: HostAndPort, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.location = location
        self.reader = reader
        self.writer = writer

    @property
    def is_closed(self) -> bool:
        return self.writer.is_closing()

    def close(self) -> None:
        if not self.writer.is_closing():
            logger.debug(f"Closing connection to {format_host_and_port(self.location)}")
            self.writer.close()

    async def aclose(self) -> None:
        self.close()
        try:
            await self.writer.wait_closed()
        except OSError as e:
            # The stream is already gone; nothing is left to release
            logger.debug(f"Error waiting for connection to {format_host_and_port(self.location)} to close: {e}")

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
            self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> bool:
        await self.aclose()
        return False

    def __str__(self) -> str:
        return f"DeviceConnection({format_host_and_port(self.location)})"

    def __repr__(self) -> str:
        return str(self)

async def open_connection(location: HostAndPort, timeout: float=DEFAULT_CONNECT_TIMEOUT) -> DeviceConnection:
    """Open a control connection to a device at location.

    Raises DeviceConnectionError if the connection is refused, unreachable, or not
    established within timeout seconds.
    """
    host, port = location
    logger.debug(f"Opening connection to {host}:{port}")
    try:
        reader, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout)
    except asyncio.TimeoutError as e:
        raise DeviceConnectionError(f"Timed out connecting to {host}:{port}") from e
    except OSError as e:
        raise DeviceConnectionError(f"Unable to connect to {host}:{port}: {e}") from e
    return DeviceConnection((host, port), reader, writer)
