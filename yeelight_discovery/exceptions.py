#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Exceptions defined by this package"""

from __future__ import annotations

class YeeError(Exception):
  """Base class for all error exceptions defined by this package."""
  pass

class ConfigurationError(YeeError):
  """The discovery client could not be set up: invalid multicast group or port, or the
     socket could not be bound or joined to the group."""
  pass

class TransportSendError(YeeError):
  """The discovery query could not be sent."""
  pass

class ParseError(YeeError):
  """A received datagram is not a well-formed HTTP-style response."""
  pass

class FieldError(YeeError):
  """Base class for errors decoding a single field of a device advertisement."""

  field_name: str
  """The name of the header that could not be decoded."""

  def __init__(self, field_name: str, msg: str):
    super().__init__(msg)
    self.field_name = field_name

class FieldMissing(FieldError):
  """A required field is absent from a device advertisement."""

  def __init__(self, field_name: str):
    super().__init__(field_name, f"Required field {field_name!r} is missing")

class FieldInvalid(FieldError):
  """A field of a device advertisement is present but can not be parsed into its type."""

  raw_value: str
  """The undecoded header value."""

  def __init__(self, field_name: str, raw_value: str):
    super().__init__(field_name, f"Field {field_name!r} has invalid value {raw_value!r}")
    self.raw_value = raw_value

class DeviceConnectionError(YeeError, ConnectionError):
  """A control connection to a discovered device could not be opened."""
  pass
