#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Device -- An immutable record describing one discovered light, decoded and validated from
the headers of a discovery response.

A Device is either completely decoded or not created at all. The first field that is
missing or unparseable aborts decoding with FieldMissing or FieldInvalid.

Device identity is the firmware-assigned "id" alone: two Device values with the same id
compare equal and hash alike even if their location or state differ, since a light's
address may change (e.g., DHCP) but its id does not.
"""

from __future__ import annotations

from dataclasses import dataclass

from .internal_types import *
from .exceptions import FieldMissing, FieldInvalid
from .constants import DEFAULT_CONNECT_TIMEOUT
from .fields import (
    PowerStatus,
    ColorMode,
    Rgb,
    parse_u8,
    parse_u16,
    parse_support,
  )
from .util import is_ipv4_address, is_valid_port, format_host_and_port
from .connection import DeviceConnection, open_connection

_T = TypeVar('_T')

def get_field(
        headers: Mapping[str, str],
        field_name: str,
        parser: Optional[Callable[[str], _T]]=None
      ) -> Any:
    """Fetch a header and convert it with parser.

    Raises FieldMissing if the header is absent, or FieldInvalid if parser raises ValueError.
    Without a parser the raw string is returned.
    """
    try:
        raw_value = headers[field_name]
    except KeyError:
        raise FieldMissing(field_name) from None
    if parser is None:
        return raw_value
    try:
        return parser(raw_value)
    except ValueError as e:
        raise FieldInvalid(field_name, raw_value) from e

@dataclass(frozen=True, eq=False)
class Device:
    location: HostAndPort
    """The (ipv4_address, port) to contact the device at."""

    id: str
    """The stable firmware-assigned device id (e.g., "0x000000000015243f")."""

    model: str
    firmware_version: int
    supported_commands: FrozenSet[str]
    """The names of the control methods the device supports."""

    power: PowerStatus
    brightness: int
    """Brightness percentage. Nominally 1-100, but not range checked beyond 8 bits."""

    color_mode: ColorMode

    color_temperature: int
    """Only meaningful when color_mode is ColorMode.COLOR_TEMPERATURE"""

    rgb: Rgb
    """Only meaningful when color_mode is ColorMode.COLOR"""

    hue: int
    """Only meaningful when color_mode is ColorMode.HSV"""

    saturation: int
    """Only meaningful when color_mode is ColorMode.HSV"""

    name: str
    """The user-assigned name. May be empty."""

    @classmethod
    def from_headers(cls, headers: Mapping[str, str], location: HostAndPort) -> Device:
        """Decode a device from the headers of a discovery response.

        `location` comes from outside the headers (normally the datagram's source address).

        Raises FieldMissing or FieldInvalid for the first field that can not be decoded.
        """
        host, port = location
        if not is_ipv4_address(host) or not is_valid_port(port):
            raise FieldInvalid("location", f"{host}:{port}")

        id = get_field(headers, "id")
        model = get_field(headers, "model")
        firmware_version = get_field(headers, "fw_ver", parse_u8)
        power = get_field(headers, "power", PowerStatus.parse)
        supported_commands = get_field(headers, "support", parse_support)
        brightness = get_field(headers, "bright", parse_u8)
        color_mode = get_field(headers, "color_mode", ColorMode.parse)
        color_temperature = get_field(headers, "ct", parse_u16)
        rgb = get_field(headers, "rgb", Rgb.parse)
        hue = get_field(headers, "hue", parse_u16)
        saturation = get_field(headers, "sat", parse_u8)
        name = get_field(headers, "name")

        return cls(
            location=(host, port),
            id=id,
            model=model,
            firmware_version=firmware_version,
            supported_commands=supported_commands,
            power=power,
            brightness=brightness,
            color_mode=color_mode,
            color_temperature=color_temperature,
            rgb=rgb,
            hue=hue,
            saturation=saturation,
            name=name,
          )

    @property
    def identity(self) -> str:
        """The key that equality, hashing and de-duplication are based on."""
        return self.id

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Device):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self) -> int:
        return hash(self.identity)

    def supports(self, method: str) -> bool:
        return method in self.supported_commands

    async def connect(self, timeout: float=DEFAULT_CONNECT_TIMEOUT) -> DeviceConnection:
        """Open a control connection to this device. The Device itself is not changed.

        Raises DeviceConnectionError on failure.
        """
        return await open_connection(self.location, timeout=timeout)

    def to_jsonable(self) -> JsonableDict:
        return {
            "location": format_host_and_port(self.location),
            "id": self.id,
            "model": self.model,
            "fw_ver": self.firmware_version,
            "support": sorted(self.supported_commands),
            "power": self.power.value,
            "bright": self.brightness,
            "color_mode": self.color_mode.name.lower(),
            "ct": self.color_temperature,
            "rgb": { "red": self.rgb.red, "green": self.rgb.green, "blue": self.rgb.blue },
            "hue": self.hue,
            "sat": self.saturation,
            "name": self.name,
        }

    def __str__(self) -> str:
        return f"Device(id={self.id!r}, model={self.model!r}, name={self.name!r}, location={format_host_and_port(self.location)})"

def decode_device(headers: Mapping[str, str], location: HostAndPort) -> Device:
    """Decode a device from response headers. See Device.from_headers()."""
    return Device.from_headers(headers, location)
