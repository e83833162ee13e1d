#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Parsing of discovery response datagrams.

A Yeelight device answers a discovery query with an HTTP-like UDP datagram:

    HTTP/1.1 200 OK
    Cache-Control: max-age=3600
    Location: yeelight://192.168.1.239:55443
    id: 0x000000000015243f
    model: color
    ...

This module turns the raw datagram into a status line and a header mapping. Interpreting
the header values is left to yeelight_discovery.device.
"""

from __future__ import annotations

import re

from .internal_types import *
from .exceptions import ParseError
from .constants import MAX_HEADERS, RECV_BUFFER_SIZE
from .util import (
    decode_datagram_text,
    split_lines_at_lf_or_crlf,
    parse_http_header_items,
  )

class YeeResponse:
    """A parsed discovery response datagram."""

    _statement_re = re.compile(r'^HTTP/(?P<version_major>[0-9]+)\.(?P<version_minor>[0-9]+) +(?P<status_code>[0-9]{3})(?: +(?P<status>.*[^ ]))? *$')

    raw_data: bytes
    """The raw UDP datagram contents"""

    statement_line: str
    """The first line of the datagram; e.g., "HTTP/1.1 200 OK"."""

    http_version: str
    """The HTTP version string in the statement line (e.g. "1.1")"""

    status_code: int
    """The status code in the statement line (e.g. 200)"""

    status: str
    """The status string in the statement line (e.g. "OK"). May be empty."""

    headers: Dict[str, str]
    """The header values, keyed by case-sensitive header name. If a header is repeated,
       the last occurrence wins."""

    def __init__(
            self,
            raw_data: bytes,
            statement_line: str,
            http_version: str,
            status_code: int,
            status: str,
            headers: Dict[str, str]
          ) -> None:
        self.raw_data = raw_data
        self.statement_line = statement_line
        self.http_version = http_version
        self.status_code = status_code
        self.status = status
        self.headers = headers

    @classmethod
    def parse(cls, raw_data: bytes, max_headers: int=MAX_HEADERS) -> YeeResponse:
        """Parse the contents of a receive buffer.

        Raises ParseError if the statement line is not an HTTP status line, if a header line
        is malformed, or if there are more than max_headers header lines.
        """
        text = decode_datagram_text(raw_data)
        statement_and_remainder = split_lines_at_lf_or_crlf(text, 1)
        statement_line = statement_and_remainder[0]
        remainder = '' if len(statement_and_remainder) < 2 else statement_and_remainder[1]

        m = cls._statement_re.match(statement_line)
        if m is None:
            raise ParseError(f"Invalid response status line: {statement_line!r}")
        http_version = f"{int(m.group('version_major'))}.{int(m.group('version_minor'))}"
        status_code = int(m.group('status_code'))
        status = m.group('status') or ''

        try:
            items = parse_http_header_items(remainder)
        except ValueError as e:
            raise ParseError(str(e)) from e
        if len(items) > max_headers:
            raise ParseError(f"Response has {len(items)} headers; at most {max_headers} are allowed")

        headers: Dict[str, str] = {}
        for name, value in items:
            headers[name] = value

        return cls(raw_data, statement_line, http_version, status_code, status, headers)

    @property
    def is_ok(self) -> bool:
        return self.status_code == 200

    def __str__(self) -> str:
        return f"YeeResponse('{self.statement_line}', headers={self.headers})"

    def __repr__(self) -> str:
        return str(self)

def parse_response(raw_data: bytes) -> YeeResponse:
    """Parse one received datagram. Data beyond RECV_BUFFER_SIZE bytes is ignored."""
    return YeeResponse.parse(raw_data[:RECV_BUFFER_SIZE])
