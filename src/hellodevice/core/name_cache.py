"""
Device name cache.

When a device is removed, the hierarchy event carries only its id and the
server can no longer be asked for its name, so the last known name is kept
here, indexed by device id.
"""

from typing import Iterator, List, Optional, Tuple
import logging

from .errors import DeviceIdOutOfRangeError

logger = logging.getLogger(__name__)

# XI2 device ids are small integers; 0 and 1 are reserved for
# XIAllDevices/XIAllMasterDevices.
MAX_DEVICES = 40


class DeviceNameCache:
    """
    Fixed-capacity mapping from device id to last-known device name.

    A slot holds a name exactly while the device is known: from its first
    sighting until a slave-removed record evicts it.
    """

    def __init__(self, capacity: int = MAX_DEVICES):
        if capacity <= 0:
            raise ValueError(f"Capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._names: List[Optional[str]] = [None] * capacity

    def _check(self, device_id: int) -> int:
        if isinstance(device_id, bool) or not isinstance(device_id, int):
            raise DeviceIdOutOfRangeError(f"Invalid device id {device_id!r}")
        if not 0 <= device_id < self.capacity:
            raise DeviceIdOutOfRangeError(
                f"Device id {device_id} outside cache capacity {self.capacity}"
            )
        return device_id

    def lookup(self, device_id: int) -> Optional[str]:
        """Return the cached name, or None if the slot is empty."""
        return self._names[self._check(device_id)]

    def store(self, device_id: int, name: str) -> None:
        """Store a name, overwriting any previous entry."""
        self._names[self._check(device_id)] = name

    def evict(self, device_id: int) -> None:
        """Forget the name for a device. No-op if nothing is cached."""
        index = self._check(device_id)
        if self._names[index] is not None:
            logger.debug(f"Evicting device {device_id} ({self._names[index]})")
        self._names[index] = None

    def clear(self) -> None:
        """Empty every slot."""
        self._names = [None] * self.capacity

    def __contains__(self, device_id) -> bool:
        try:
            return self.lookup(device_id) is not None
        except DeviceIdOutOfRangeError:
            return False

    def __len__(self) -> int:
        return sum(1 for name in self._names if name is not None)

    def __iter__(self) -> Iterator[Tuple[int, str]]:
        for device_id, name in enumerate(self._names):
            if name is not None:
                yield device_id, name
