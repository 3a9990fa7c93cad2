"""
Core data models for HelloDevice.

These models represent the fundamental concepts:
- DeviceUse: Role of a device in the XInput2 hierarchy (master or slave)
- HierarchyFlag: Change bits carried by a hierarchy-changed event
- DeviceInfo: A device as returned by enumeration
- HierarchyEvent: One hierarchy-changed notification from the server
- Transition: A semantic device state change handed to the notifier
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum, IntFlag
from typing import List


class DeviceUse(IntEnum):
    """Role of an input device. Values match the XI2 wire protocol."""
    MASTER_POINTER = 1
    MASTER_KEYBOARD = 2
    SLAVE_POINTER = 3
    SLAVE_KEYBOARD = 4
    FLOATING_SLAVE = 5

    @property
    def is_master(self) -> bool:
        """Virtual pointer/keyboard aggregating physical devices."""
        return self in (DeviceUse.MASTER_POINTER, DeviceUse.MASTER_KEYBOARD)


class HierarchyFlag(IntFlag):
    """Change bits of a hierarchy-changed event."""
    NONE = 0
    MASTER_ADDED = 1 << 0
    MASTER_REMOVED = 1 << 1
    SLAVE_ADDED = 1 << 2
    SLAVE_REMOVED = 1 << 3
    SLAVE_ATTACHED = 1 << 4
    SLAVE_DETACHED = 1 << 5
    DEVICE_ENABLED = 1 << 6
    DEVICE_DISABLED = 1 << 7


ENABLE_DISABLE = HierarchyFlag.DEVICE_ENABLED | HierarchyFlag.DEVICE_DISABLED


class TransitionType(Enum):
    """Kind of transition reported to the handler."""
    ADDED = "added"
    REMOVED = "removed"
    PRESENT = "present"


def _as_use(value) -> DeviceUse:
    try:
        return DeviceUse(value)
    except ValueError:
        # Unknown roles are treated as floating physical devices
        return DeviceUse.FLOATING_SLAVE


@dataclass
class DeviceInfo:
    """
    Represents an input device known to the display server.

    Mirrors XIDeviceInfo, minus the input classes we never look at.
    """
    device_id: int
    name: str
    use: DeviceUse
    enabled: bool = True
    attachment: int = 0                        # Master this slave is attached to

    def __post_init__(self):
        self.use = _as_use(self.use)

    @property
    def is_master(self) -> bool:
        return self.use.is_master

    @property
    def is_physical(self) -> bool:
        """Check if the device is real hardware (not a master)."""
        return not self.use.is_master


@dataclass
class HierarchyInfo:
    """Per-device record inside a hierarchy event."""
    device_id: int
    use: DeviceUse
    flags: HierarchyFlag = HierarchyFlag.NONE
    enabled: bool = False
    attachment: int = 0

    def __post_init__(self):
        self.use = _as_use(self.use)
        self.flags = HierarchyFlag(self.flags)

    @property
    def is_master(self) -> bool:
        return self.use.is_master

    def has_flag(self, flag: HierarchyFlag) -> bool:
        """Check if any of the given flag bits are set on this record."""
        return bool(self.flags & flag)


@dataclass
class HierarchyEvent:
    """
    A single hierarchy-changed notification.

    The top-level flags are the union of the flags of all info records.
    """
    flags: HierarchyFlag = HierarchyFlag.NONE
    info: List[HierarchyInfo] = field(default_factory=list)

    def __post_init__(self):
        self.flags = HierarchyFlag(self.flags)

    def has_flag(self, flag: HierarchyFlag) -> bool:
        return bool(self.flags & flag)


@dataclass(frozen=True)
class Transition:
    """A (type, name, device id) triple consumed by the notifier."""
    transition_type: TransitionType
    name: str
    device_id: int

    def __str__(self) -> str:
        return f"{self.name} ({self.device_id}) {self.transition_type.value}"
