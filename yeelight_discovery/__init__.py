# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Package yeelight_discovery discovers Yeelight smart lights on the local network.

A discovery client multicasts a single SSDP-style "M-SEARCH" query for "wifi_bulb" devices
to 239.255.255.250:1982 and collects the HTTP-like UDP responses that lights send back
within a timeout. Each response carries the light's id, model, firmware version, supported
control methods and current state (power, brightness, color mode and color values) as
headers. Responses are decoded into immutable Device records and de-duplicated by device id.

Opening a control connection to a discovered light is possible, but no control commands
are implemented.
"""

from .version import __version__

from .internal_types import HostAndPort, Jsonable, JsonableDict

from .exceptions import (
    YeeError,
    ConfigurationError,
    TransportSendError,
    ParseError,
    FieldError,
    FieldMissing,
    FieldInvalid,
    DeviceConnectionError,
  )

from .fields import PowerStatus, ColorMode, Rgb
from .response import YeeResponse, parse_response
from .device import Device, decode_device, get_field
from .collector import DeviceCollector
from .connection import DeviceConnection, open_connection
from .client import YeeClient, discover_devices
from .constants import (
    MULTICAST_ADDRESS,
    MULTICAST_PORT,
    DEFAULT_LOCAL_PORT,
    DEFAULT_DISCOVERY_TIMEOUT,
    SEARCH_MESSAGE,
  )

__all__ = [
    '__version__',
    'HostAndPort', 'Jsonable', 'JsonableDict',
    'YeeError', 'ConfigurationError', 'TransportSendError', 'ParseError',
    'FieldError', 'FieldMissing', 'FieldInvalid', 'DeviceConnectionError',
    'PowerStatus', 'ColorMode', 'Rgb',
    'YeeResponse', 'parse_response',
    'Device', 'decode_device', 'get_field',
    'DeviceCollector',
    'DeviceConnection', 'open_connection',
    'YeeClient', 'discover_devices',
    'MULTICAST_ADDRESS', 'MULTICAST_PORT', 'DEFAULT_LOCAL_PORT',
    'DEFAULT_DISCOVERY_TIMEOUT', 'SEARCH_MESSAGE',
]
