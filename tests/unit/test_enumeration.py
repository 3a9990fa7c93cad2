"""
Unit tests for initial device enumeration.
"""

import unittest

from hellodevice.core import (
    DeviceInfo,
    DeviceNameCache,
    DeviceUse,
    Transition,
    TransitionType,
    process_current_devices,
)


class StubSession:
    """Returns a fixed device list."""

    def __init__(self, devices):
        self.devices = devices

    def list_devices(self):
        return list(self.devices)


def standard_devices():
    return [
        DeviceInfo(2, "Virtual core pointer", DeviceUse.MASTER_POINTER),
        DeviceInfo(3, "Virtual core keyboard", DeviceUse.MASTER_KEYBOARD),
        DeviceInfo(4, "Virtual core XTEST pointer", DeviceUse.SLAVE_POINTER),
        DeviceInfo(8, "AT keyboard", DeviceUse.SLAVE_KEYBOARD),
        DeviceInfo(11, "Touchpad", DeviceUse.SLAVE_POINTER, enabled=False),
        DeviceInfo(12, "Floating pen", DeviceUse.FLOATING_SLAVE),
    ]


class TestProcessCurrentDevices(unittest.TestCase):
    """Tests for process_current_devices."""

    def setUp(self):
        """Create cache and session."""
        self.cache = DeviceNameCache()
        self.session = StubSession(standard_devices())

    def test_reports_enabled_physical_devices(self):
        """Test one present transition per enabled physical device."""
        transitions = process_current_devices(self.session, self.cache)

        self.assertEqual(transitions, [
            Transition(TransitionType.PRESENT, "Virtual core XTEST pointer", 4),
            Transition(TransitionType.PRESENT, "AT keyboard", 8),
            Transition(TransitionType.PRESENT, "Floating pen", 12),
        ])

    def test_seeds_cache(self):
        """Test reported devices are cached and skipped ones are not."""
        process_current_devices(self.session, self.cache)

        self.assertEqual(self.cache.lookup(8), "AT keyboard")
        self.assertEqual(self.cache.lookup(12), "Floating pen")
        self.assertIsNone(self.cache.lookup(2))
        self.assertIsNone(self.cache.lookup(3))
        self.assertIsNone(self.cache.lookup(11))

    def test_callback(self):
        """Test the callback sees each transition in order."""
        seen = []
        process_current_devices(self.session, self.cache, seen.append)
        self.assertEqual([t.device_id for t in seen], [4, 8, 12])

    def test_rerun_resets_cache(self):
        """Test a simulated restart reflects only the current devices."""
        process_current_devices(self.session, self.cache)
        self.cache.store(20, "Stale device")

        self.session.devices = [DeviceInfo(8, "AT keyboard", DeviceUse.SLAVE_KEYBOARD)]
        transitions = process_current_devices(self.session, self.cache)

        self.assertEqual(transitions, [Transition(TransitionType.PRESENT, "AT keyboard", 8)])
        self.assertEqual(list(self.cache), [(8, "AT keyboard")])

    def test_rerun_is_idempotent(self):
        """Test running twice gives the same result."""
        first = process_current_devices(self.session, self.cache)
        second = process_current_devices(self.session, self.cache)
        self.assertEqual(first, second)
        self.assertEqual(len(self.cache), 3)

    def test_out_of_range_device_skipped(self):
        """Test a device id beyond the cache is skipped, not fatal."""
        self.session.devices.append(DeviceInfo(400, "Huge id", DeviceUse.SLAVE_POINTER))
        transitions = process_current_devices(self.session, self.cache)
        self.assertNotIn(400, [t.device_id for t in transitions])
        self.assertEqual(len(transitions), 3)

    def test_no_devices(self):
        """Test an empty server."""
        transitions = process_current_devices(StubSession([]), self.cache)
        self.assertEqual(transitions, [])


if __name__ == "__main__":
    unittest.main()
