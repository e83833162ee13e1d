#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Simple utility functions used by this package
"""

from __future__ import annotations

from typing_extensions import SupportsIndex

import re
import ipaddress
from ipaddress import IPv4Address
from urllib.parse import urlsplit

from yeelight_discovery.internal_types import *

from email.parser import HeaderParser

from .constants import LOCATION_SCHEME

_header_line_re = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+:")
"""An HTTP header line begins with a token followed by a colon."""

def decode_datagram_text(data: bytes) -> str:
    """Decode the contents of a receive buffer as text.

    Invalid UTF-8 sequences are replaced with U+FFFD rather than raising. NUL padding left
    over from a fixed-size receive buffer and surrounding whitespace are removed.
    """
    return data.decode('utf-8', errors='replace').rstrip('\x00').strip()

def split_lines_at_lf_or_crlf(data: str, maxsplit: SupportsIndex = -1) -> List[str]:
    """Split a string at LF or CRLF.

    If maxsplit is given, at most maxsplit splits are done.

    Returns a List[str] representing the delimited lines with the delimiters removed.
    """
    parts = data.split('\n', maxsplit)
    if len(parts) > 1:
        for i, part in enumerate(parts[:-1]):
            if part.endswith('\r'):
                parts[i] = part[:-1]
    return parts

def split_headers_and_body(data: str) -> Tuple[str, str]:
    """Spits a string with HTTP headers and an optional body into the headers and the body.

    A relaxed interpretation of '\n' as a line delimiter is accepted even though '\r\n' is required
    by the standard.

    Returns a Tuple[headers: str, body: str]. If there is no body, '' is returned for the body.
    """
    delims = ['\n\r\n', '\n\n']
    first_i = -1
    first_nb = 0

    for delim in delims:
        i = data.find(delim)
        if i != -1:
            if first_i == -1 or i < first_i:
                first_i = i
                first_nb = len(delim)
    if first_i == -1:
        headers, body = data, ''
    else:
        headers, body = data[:first_i], data[first_i + first_nb:]
        if headers.endswith('\r'):
            headers = headers[:-1]

    return (headers, body)

def parse_http_header_items(data: str) -> List[Tuple[str, str]]:
    """Parse HTTP-style "Name: value" header lines out of a string, in order of appearance.

    A relaxed interpretation of '\n' as a line delimiter is accepted even though '\r\n' is required
    by the standard. The final line of the headers does not need to be terminated by a newline.
    Anything following an empty line is treated as a body and ignored.

    It is assumed that any preceding statement line (e.g., "HTTP/1.1 200 OK\r\n") has already been removed.

    Header names keep their case. Values are stripped of surrounding blanks; no other decoding is performed.
    Repeated headers appear once per occurrence.

    Raises ValueError if a line within the headers is not a valid header line.
    """
    headers_data, _ = split_headers_and_body(data)
    if headers_data == '':
        return []
    # Every line is "<token>:"; folded continuation lines are not accepted
    for line in split_lines_at_lf_or_crlf(headers_data):
        if _header_line_re.match(line) is None:
            raise ValueError(f"Malformed header line: {line!r}")
    msg = HeaderParser().parsestr(headers_data + '\n', headersonly=True)
    if len(msg.defects) > 0:
        raise ValueError(f"Malformed header lines: {msg.defects}")
    return [ (name, str(value).strip(' \t')) for name, value in msg.items() ]

def is_ipv4_multicast_address(address: str) -> bool:
    """Returns True if address is a dotted-quad IPv4 address in 224.0.0.0/4."""
    try:
        return IPv4Address(address).is_multicast
    except ipaddress.AddressValueError:
        return False

def is_ipv4_address(address: str) -> bool:
    """Returns True if address is a dotted-quad IPv4 address."""
    try:
        IPv4Address(address)
    except ipaddress.AddressValueError:
        return False
    return True

def is_valid_port(port: int) -> bool:
    return isinstance(port, int) and not isinstance(port, bool) and 0 <= port <= 65535

def parse_location(value: str) -> Optional[HostAndPort]:
    """Parse a Location header value such as "yeelight://192.168.1.239:55443" into a HostAndPort.

    Returns None if the value does not use the yeelight scheme or does not name an IPv4 address
    and port.
    """
    try:
        parts = urlsplit(value.strip())
        host = parts.hostname
        port = parts.port
    except ValueError:
        return None
    if parts.scheme != LOCATION_SCHEME or host is None or port is None:
        return None
    if not is_ipv4_address(host):
        return None
    return (host, port)

def format_host_and_port(addr: HostAndPort) -> str:
    return f"{addr[0]}:{addr[1]}"
