#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

import dataclasses
import json

import pytest

from yeelight_discovery import (
    Device,
    decode_device,
    get_field,
    FieldMissing,
    FieldInvalid,
    PowerStatus,
    ColorMode,
    Rgb,
)
from yeelight_discovery.fields import parse_u8

from conftest import DEVICE_ADDR, make_headers

FIELD_NAMES = [
    "id", "model", "fw_ver", "power", "support", "bright",
    "color_mode", "ct", "rgb", "hue", "sat", "name",
]

def test_decodes_every_field(headers):
    device = Device.from_headers(headers, DEVICE_ADDR)
    assert device.location == DEVICE_ADDR
    assert device.id == "0x1234"
    assert device.model == "floor"
    assert device.firmware_version == 40
    assert device.power is PowerStatus.ON
    assert device.supported_commands == frozenset({ "get_power", "set_power", "get_rgb", "set_rgb" })
    assert device.brightness == 34
    assert device.color_mode is ColorMode.COLOR_TEMPERATURE
    assert device.color_temperature == 0
    assert device.rgb == Rgb(red=10, green=10, blue=10)
    assert device.hue == 314
    assert device.saturation == 12
    assert device.name == "room_light"

def test_numeric_fields_round_trip_to_header_text(headers):
    device = Device.from_headers(headers, DEVICE_ADDR)
    assert str(device.firmware_version) == headers["fw_ver"]
    assert str(device.brightness) == headers["bright"]
    assert str(device.color_temperature) == headers["ct"]
    assert str(device.hue) == headers["hue"]
    assert str(device.saturation) == headers["sat"]
    assert str(device.rgb.packed) == headers["rgb"]

@pytest.mark.parametrize("field_name", FIELD_NAMES)
def test_missing_field(field_name: str):
    headers = make_headers(**{ field_name: None })
    with pytest.raises(FieldMissing) as excinfo:
        Device.from_headers(headers, DEVICE_ADDR)
    assert excinfo.value.field_name == field_name

@pytest.mark.parametrize("field_name, raw_value", [
    ("fw_ver", "256"),
    ("fw_ver", "abc"),
    ("power", "ON"),
    ("bright", "-1"),
    ("color_mode", "7"),
    ("ct", "65536"),
    ("rgb", "16777216"),
    ("hue", "1.5"),
    ("sat", ""),
])
def test_invalid_field(field_name: str, raw_value: str):
    headers = make_headers(**{ field_name: raw_value })
    with pytest.raises(FieldInvalid) as excinfo:
        Device.from_headers(headers, DEVICE_ADDR)
    assert excinfo.value.field_name == field_name
    assert excinfo.value.raw_value == raw_value
    assert isinstance(excinfo.value.__cause__, ValueError)

def test_first_error_wins():
    headers = make_headers(fw_ver="bad", sat=None)
    with pytest.raises(FieldInvalid) as excinfo:
        Device.from_headers(headers, DEVICE_ADDR)
    assert excinfo.value.field_name == "fw_ver"

def test_empty_support_and_name():
    device = Device.from_headers(make_headers(support="", name=""), DEVICE_ADDR)
    assert device.supported_commands == frozenset()
    assert device.name == ""

def test_support_tokens():
    device = Device.from_headers(make_headers(support="a b c"), DEVICE_ADDR)
    assert device.supported_commands == { "a", "b", "c" }
    assert device.supports("b")
    assert not device.supports("set_ct_abx")

def test_brightness_is_not_limited_to_percent():
    device = Device.from_headers(make_headers(bright="200"), DEVICE_ADDR)
    assert device.brightness == 200

def test_non_ipv4_location_is_rejected(headers):
    with pytest.raises(FieldInvalid) as excinfo:
        Device.from_headers(headers, ("fe80::1", 1234))
    assert excinfo.value.field_name == "location"

def test_identity_is_id_only(headers):
    a = Device.from_headers(headers, DEVICE_ADDR)
    b = Device.from_headers(make_headers(power="off", name="other", bright="1"), ("192.168.0.99", 55443))
    c = Device.from_headers(make_headers(id="0x5678"), DEVICE_ADDR)
    assert a == b
    assert hash(a) == hash(b)
    assert a.identity == "0x1234"
    assert a != c
    assert len({ a, b, c }) == 2
    assert a != "0x1234"

def test_decoding_twice_gives_equal_devices(headers):
    assert decode_device(headers, DEVICE_ADDR) == decode_device(headers, DEVICE_ADDR)

def test_device_is_immutable(headers):
    device = Device.from_headers(headers, DEVICE_ADDR)
    with pytest.raises(dataclasses.FrozenInstanceError):
        device.name = "renamed" # type: ignore[misc]

def test_to_jsonable(headers):
    device = Device.from_headers(headers, DEVICE_ADDR)
    data = device.to_jsonable()
    assert data["location"] == "192.168.0.42:1234"
    assert data["id"] == "0x1234"
    assert data["color_mode"] == "color_temperature"
    assert data["rgb"] == { "red": 10, "green": 10, "blue": 10 }
    assert data["support"] == sorted(data["support"])
    json.dumps(data)

def test_get_field():
    headers = { "fw_ver": "9", "bad": "x" }
    assert get_field(headers, "fw_ver") == "9"
    assert get_field(headers, "fw_ver", parse_u8) == 9
    with pytest.raises(FieldMissing):
        get_field(headers, "missing", parse_u8)
    with pytest.raises(FieldInvalid):
        get_field(headers, "bad", parse_u8)
