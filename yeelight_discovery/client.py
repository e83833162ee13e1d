# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
YeeClient -- A Yeelight discovery client that can:

  1. Send a discovery query to the Yeelight multicast UDP address (239.255.255.250:1982)
  2. Receive, parse and decode discovery responses from lights on the local network
  3. Collect and return the unique devices that responded within a timeout period
"""

from __future__ import annotations


import asyncio
from asyncio import Future
import socket
import struct
import ipaddress

from .internal_types import *
from .pkg_logging import logger
from .constants import (
    MULTICAST_ADDRESS,
    MULTICAST_PORT,
    ALL_LOCAL,
    DEFAULT_LOCAL_PORT,
    DEFAULT_DISCOVERY_TIMEOUT,
    SEARCH_MESSAGE,
  )
from .exceptions import (
    YeeError,
    ConfigurationError,
    TransportSendError,
    ParseError,
    FieldError,
  )
from .response import YeeResponse, parse_response
from .device import Device
from .collector import DeviceCollector
from .util import is_ipv4_multicast_address, is_valid_port, parse_location, format_host_and_port

class _YeeClientProtocol(asyncio.DatagramProtocol):
    """An adapter between the asyncio transport and YeeClient."""
    client: YeeClient

    def __init__(self, client: YeeClient):
        self.client = client

    def connection_made(self, transport: asyncio.BaseTransport):
        """Called when a connection is made."""
        self.client.connection_made(transport) # type: ignore[arg-type]

    def datagram_received(self, data: bytes, addr: Tuple[str, int]):
        """Called when some datagram is received."""
        self.client.datagram_received(addr, data)

    def error_received(self, exc: Exception):
        """Called when a send or receive operation raises an OSError.

        (Other than BlockingIOError or InterruptedError.)
        """
        self.client.error_received(exc)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        """Called when the connection is lost or closed."""
        self.client.connection_lost(exc)

class YeeClient(AsyncContextManager['YeeClient']):
    """
    A Yeelight discovery client.

    The socket is bound to 0.0.0.0:<local_port> and joined to the multicast group when the
    client is constructed, so configuration problems surface immediately as ConfigurationError.
    The socket is attached to the running event loop by start() (or implicitly by the first
    discover() or by entering the async context), and released by close()/aclose() or by
    leaving the async context.

    Usage:
        async with YeeClient() as client:
            for device in await client.discover(timeout=2.0):
                print(device)
    """

    multicast_address: str = MULTICAST_ADDRESS
    """The multicast address to send discovery queries to."""

    multicast_port: int = MULTICAST_PORT
    """The multicast port to send discovery queries to."""

    local_port: int = DEFAULT_LOCAL_PORT
    """The local UDP port that responses are received on. 0 selects an ephemeral port."""

    response_wait_time: float = DEFAULT_DISCOVERY_TIMEOUT
    """The default amount of time (in seconds) that discover() collects responses for."""

    sock: Optional[socket.socket] = None
    """The bound, group-joined, non-blocking socket owned by this client. None once closed."""

    _transport: Optional[asyncio.DatagramTransport] = None
    """The asyncio transport wrapping sock, once start() has been called."""

    _closed: Optional[Future[None]] = None
    """Completed when the transport has released the socket."""

    _collector: Optional[DeviceCollector] = None
    """The collector of the discovery session in progress, if any."""

    def __init__(
            self,
            multicast_address: str=MULTICAST_ADDRESS,
            multicast_port: int=MULTICAST_PORT,
            local_port: int=DEFAULT_LOCAL_PORT,
            response_wait_time: float=DEFAULT_DISCOVERY_TIMEOUT,
          ) -> None:
        if not is_ipv4_multicast_address(multicast_address):
            raise ConfigurationError(f"Not an IPv4 multicast address: {multicast_address!r}")
        if not is_valid_port(multicast_port):
            raise ConfigurationError(f"Invalid multicast port: {multicast_port!r}")
        if not is_valid_port(local_port):
            raise ConfigurationError(f"Invalid local port: {local_port!r}")
        self.multicast_address = str(ipaddress.IPv4Address(multicast_address))
        self.multicast_port = multicast_port
        self.local_port = local_port
        self.response_wait_time = response_wait_time
        try:
            self.sock = self.create_socket()
        except OSError as e:
            raise ConfigurationError(
                f"Unable to listen for responses to {self.multicast_address}:{self.multicast_port} on port {local_port}: {e}"
              ) from e

    def create_socket(self) -> socket.socket:
        """Creates the socket that queries are sent from and responses are received on.

        Binds to the wildcard address since the addresses of the lights are not known, joins
        the multicast group on the default interface, and makes the socket non-blocking.
        Subclasses may override.
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        try:
            sock.bind((ALL_LOCAL, self.local_port))
            mreq = socket.inet_aton(self.multicast_address) + struct.pack('=I', socket.INADDR_ANY)
            logger.debug(f"Joining multicast group {self.multicast_address} on {ALL_LOCAL}; mreq={mreq!r}")
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)
            sock.setblocking(False)
        except BaseException:
            sock.close()
            raise
        return sock

    @property
    def search_destination(self) -> HostAndPort:
        """The address that discovery queries are sent to."""
        return (self.multicast_address, self.multicast_port)

    @property
    def local_address(self) -> HostAndPort:
        """The local (address, port) that the socket is bound to."""
        if self.sock is None:
            raise YeeError("YeeClient is closed")
        return self.sock.getsockname()

    @property
    def is_closed(self) -> bool:
        return self.sock is None

    async def start(self) -> None:
        """Attach the socket to the running event loop. Does nothing if already started."""
        if self.sock is None:
            raise YeeError("YeeClient is closed")
        if not self._transport is None:
            return
        loop = asyncio.get_running_loop()
        self._closed = loop.create_future()
        untyped_transport, protocol = await loop.create_datagram_endpoint(
            lambda: _YeeClientProtocol(self),
            sock=self.sock
          )
        # asyncio datagram transports do not inherit from asyncio.DatagramTransport
        transport: asyncio.DatagramTransport = untyped_transport # type: ignore[assignment]
        self._transport = transport
        logger.debug(f"Created datagram endpoint on {self.local_address}. transport={transport}, protocol={protocol}")

    def send_search(self) -> None:
        """Send a single discovery query to search_destination.

        Raises TransportSendError if the datagram can not be sent.
        """
        if self.sock is None:
            raise YeeError("YeeClient is closed")
        dest = self.search_destination
        logger.debug(f"Sending discovery query to {format_host_and_port(dest)}: {SEARCH_MESSAGE!r}")
        try:
            self.sock.sendto(SEARCH_MESSAGE, dest)
        except OSError as e:
            raise TransportSendError(f"Unable to send discovery query to {format_host_and_port(dest)}: {e}") from e

    async def discover(self, timeout: Optional[float]=None) -> List[Device]:
        """Run one discovery session.

        Sends one query, then collects responses until timeout seconds (default:
        response_wait_time) have passed since the call was made. Responses that can not be
        parsed or decoded are dropped. Only the first response for each device id is kept.

        Returns the discovered devices.

        Raises TransportSendError if the query can not be sent.
        """
        if timeout is None:
            timeout = self.response_wait_time
        loop = asyncio.get_running_loop()
        # loop.time() is monotonic
        end_time = loop.time() + timeout
        if not self._collector is None:
            raise YeeError("A discovery session is already in progress on this client")
        collector = DeviceCollector()
        # The collector must be in place before the query goes out so that no response is missed
        self._collector = collector
        try:
            await self.start()
            self.send_search()
            remaining_time = end_time - loop.time()
            if remaining_time > 0.0:
                await asyncio.sleep(remaining_time)
        finally:
            self._collector = None
        devices = collector.finish()
        logger.debug(f"Discovery session finished with {len(devices)} device(s)")
        return devices

    def resolve_location(self, response: YeeResponse, src_addr: HostAndPort) -> HostAndPort:
        """Returns the control endpoint advertised in the Location header if it is valid,
           else the address the response came from."""
        location_value = response.headers.get("Location")
        if not location_value is None:
            location = parse_location(location_value)
            if not location is None:
                return location
            logger.debug(f"Ignoring unusable Location header from {src_addr}: {location_value!r}")
        return src_addr

    def handle_datagram(self, collector: DeviceCollector, addr: HostAndPort, data: bytes) -> Optional[Device]:
        """Parse and decode one datagram and offer the result to collector.

        Returns the decoded Device, or None if the datagram was discarded.
        """
        try:
            response = parse_response(data)
        except ParseError as e:
            logger.debug(f"Discarding unparseable datagram from {addr}, raw=[{data!r}]: {e}")
            return None
        if not response.is_ok:
            logger.debug(f"Discarding error response from {addr}: {response.statement_line}")
            return None
        location = self.resolve_location(response, addr)
        try:
            device = Device.from_headers(response.headers, location)
        except FieldError as e:
            logger.debug(f"Discarding advertisement from {addr}: {e}")
            return None
        if collector.offer(device):
            logger.info(f"Discovered {device}")
        return device

    def connection_made(self, transport: asyncio.DatagramTransport) -> None:
        logger.debug(f"Connection made: {transport}")

    def datagram_received(self, addr: HostAndPort, data: bytes) -> None:
        """Called by the event loop for every datagram that arrives on the socket."""
        collector = self._collector
        if collector is None:
            logger.debug(f"Ignoring datagram from {addr} received outside a discovery session")
            return
        logger.debug(f"Received datagram from {addr}: {data!r}")
        self.handle_datagram(collector, (addr[0], addr[1]), data)

    def error_received(self, exc: Exception) -> None:
        """Called when a send or receive operation raises an OSError. These are not fatal to a
           discovery session."""
        logger.debug(f"Ignoring transport error on {self}: {exc}")

    def connection_lost(self, exc: Optional[Exception]) -> None:
        """Called when the transport has closed the socket."""
        if not exc is None:
            logger.warning(f"Transport for {self} closed with error: {exc}")
        else:
            logger.debug(f"Transport for {self} closed")
        self._transport = None
        self.sock = None
        if not self._closed is None and not self._closed.done():
            self._closed.set_result(None)

    def close(self) -> None:
        """Release the socket. The client can not be used afterwards."""
        if not self._transport is None:
            # The transport closes the socket, then calls connection_lost()
            self._transport.close()
        elif not self.sock is None:
            self.sock.close()
            self.sock = None

    async def aclose(self) -> None:
        """Release the socket and wait until it is closed."""
        self.close()
        if not self._closed is None:
            await self._closed

    async def __aenter__(self) -> Self:
        await self.start()
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
        return f"YeeClient({self.multicast_address}:{self.multicast_port}, local_port={self.local_port})"

    def __repr__(self) -> str:
        return str(self)

def discover_devices(
        timeout: float=DEFAULT_DISCOVERY_TIMEOUT,
        multicast_address: str=MULTICAST_ADDRESS,
        multicast_port: int=MULTICAST_PORT,
        local_port: int=DEFAULT_LOCAL_PORT,
      ) -> List[Device]:
    """Blocking convenience wrapper: create a client, run one discovery session on a private event
       loop, close the client, and return the discovered devices.

       Raises ConfigurationError or TransportSendError as YeeClient does.
    """
    async def adiscover() -> List[Device]:
        async with YeeClient(
                multicast_address=multicast_address,
                multicast_port=multicast_port,
                local_port=local_port,
              ) as client:
            return await client.discover(timeout)

    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        return loop.run_until_complete(adiscover())
    finally:
        asyncio.set_event_loop(None)
        loop.close()
