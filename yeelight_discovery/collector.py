#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
DeviceCollector -- accumulates the devices found in one discovery session, keeping one
Device per device id.
"""

from __future__ import annotations

from .internal_types import *
from .pkg_logging import logger
from .device import Device

class DeviceCollector:
    """Accumulates discovered devices keyed by device id.

    The first advertisement seen for an id wins. Later advertisements for the same id are
    dropped even if they report a different location or state, so a device whose state
    changes during a session is reported as first seen.

    A collector belongs to a single session and is not shared between threads.
    """

    devices: Dict[str, Device]
    """The accepted devices, keyed by id, in the order they were first seen."""

    def __init__(self) -> None:
        self.devices = {}

    def offer(self, device: Device) -> bool:
        """Add device unless one with the same id has already been collected.

        Returns True if the device was added, False if it was a duplicate and was discarded.
        """
        if device.identity in self.devices:
            logger.debug(f"Dropping duplicate advertisement for {device}")
            return False
        self.devices[device.identity] = device
        return True

    def get(self, id: str) -> Optional[Device]:
        return self.devices.get(id)

    def finish(self) -> List[Device]:
        """Returns the collected devices, one per id. Callers should not depend on the order."""
        return list(self.devices.values())

    def __contains__(self, item: Any) -> bool:
        if isinstance(item, Device):
            item = item.identity
        return item in self.devices

    def __len__(self) -> int:
        return len(self.devices)

    def __iter__(self) -> Iterator[Device]:
        return iter(self.devices.values())
