#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Typed values carried in device advertisements, and the parsers that produce them from
raw header strings. Every parser raises ValueError on bad input.
"""

from __future__ import annotations

import re
from enum import Enum, IntEnum

from .internal_types import *

_decimal_re = re.compile(r'[0-9]+')

class PowerStatus(Enum):
    """The power state of a light, as advertised in the "power" header."""
    ON = "on"
    OFF = "off"

    @classmethod
    def parse(cls, value: str) -> PowerStatus:
        # Enum lookup by value is exact and case-sensitive
        return cls(value)

class ColorMode(IntEnum):
    """The color mode of a light, as advertised in the "color_mode" header. Only the
       three codes below are valid."""
    COLOR = 1
    """RGB color. The "rgb" field is meaningful."""

    COLOR_TEMPERATURE = 2
    """White color temperature. The "ct" field is meaningful."""

    HSV = 3
    """Hue/saturation. The "hue" and "sat" fields are meaningful."""

    @classmethod
    def parse(cls, value: str) -> ColorMode:
        return cls(parse_uint(value, 8))

class Rgb(NamedTuple):
    """An RGB color. Advertised as a single decimal integer 0xRRGGBB."""
    red: int
    green: int
    blue: int

    @classmethod
    def from_packed(cls, value: int) -> Rgb:
        if not 0 <= value <= 0xFFFFFF:
            raise ValueError(f"Packed RGB value out of range: {value}")
        return cls((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)

    @classmethod
    def parse(cls, value: str) -> Rgb:
        return cls.from_packed(parse_uint(value, 24))

    @property
    def packed(self) -> int:
        return (self.red << 16) | (self.green << 8) | self.blue

def parse_uint(value: str, bits: int) -> int:
    """Parse a strictly decimal unsigned integer that must fit in `bits` bits.

    Only ASCII digits are accepted; signs, whitespace, underscores and other numerals that int()
    would tolerate are rejected.
    """
    if _decimal_re.fullmatch(value) is None:
        raise ValueError(f"Not a decimal unsigned integer: {value!r}")
    result = int(value)
    if result >= (1 << bits):
        raise ValueError(f"Value {result} does not fit in {bits} bits")
    return result

def parse_u8(value: str) -> int:
    return parse_uint(value, 8)

def parse_u16(value: str) -> int:
    return parse_uint(value, 16)

def parse_support(value: str) -> FrozenSet[str]:
    """Split the whitespace-delimited "support" header into a set of method names."""
    return frozenset(value.split())
