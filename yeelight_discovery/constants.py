# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Constants used by this package"""

MULTICAST_ADDRESS = "239.255.255.250"
"""The multicast address that Yeelight devices listen on for discovery queries."""

MULTICAST_PORT = 1982
"""The port number that Yeelight devices listen on for discovery queries."""

ALL_LOCAL = "0.0.0.0"
"""The wildcard local address. Device addresses are unknown before discovery, so we listen on all interfaces."""

DEFAULT_LOCAL_PORT = 7821
"""The default local UDP port that discovery responses are received on."""

SEARCH_MESSAGE = (
    b'M-SEARCH * HTTP/1.1\r\n'
    b'HOST: 239.255.255.250:1982\r\n'
    b'MAN: "ssdp:discover"\r\n'
    b'ST: wifi_bulb'
  )
"""The discovery query sent to the multicast group. One is sent per discovery session."""

RECV_BUFFER_SIZE = 1024
"""The maximum number of bytes of a received datagram that are examined. Longer datagrams are truncated."""

MAX_HEADERS = 17
"""The maximum number of header lines accepted in a discovery response."""

DEFAULT_DISCOVERY_TIMEOUT = 2.0
"""The default amount of time (in seconds) to collect discovery responses."""

DEFAULT_CONNECT_TIMEOUT = 5.0
"""The default amount of time (in seconds) to wait for a device control connection to open."""

LOCATION_SCHEME = "yeelight"
"""The URL scheme used in the Location header of discovery responses (e.g., "yeelight://192.168.1.10:55443")."""
