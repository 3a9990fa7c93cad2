"""
Unit tests for the device classifier.
"""

import unittest
from unittest import mock

from hellodevice.core import (
    DeviceClassifier,
    DeviceNameCache,
    DeviceUse,
    HierarchyEvent,
    HierarchyFlag,
    HierarchyInfo,
    Transition,
    TransitionType,
)

ENABLED = HierarchyFlag.DEVICE_ENABLED
DISABLED = HierarchyFlag.DEVICE_DISABLED
REMOVED = HierarchyFlag.SLAVE_REMOVED


def make_event(*records):
    """Build an event whose top-level flags are the union of its records."""
    flags = HierarchyFlag.NONE
    for record in records:
        flags |= record.flags
    return HierarchyEvent(flags=flags, info=list(records))


def record(device_id, flags, use=DeviceUse.SLAVE_POINTER):
    return HierarchyInfo(device_id=device_id, use=use, flags=flags)


class StubSession:
    """Answers name queries from a dict."""

    def __init__(self, names=None):
        self.names = names or {}
        self.queries = []

    def query_device_name(self, device_id):
        self.queries.append(device_id)
        return self.names.get(device_id)


class TestDeviceClassifier(unittest.TestCase):
    """Tests for DeviceClassifier."""

    def setUp(self):
        """Create classifier with no settle delay."""
        self.cache = DeviceNameCache()
        self.session = StubSession({5: "Mouse", 7: "Tablet"})
        self.sleep = mock.Mock()
        self.classifier = DeviceClassifier(
            self.cache, self.session, settle_delay=0, sleep=self.sleep,
        )
        self.emitted = []
        self.classifier.add_transition_callback(self.emitted.append)

    def test_enable_then_disable(self):
        """Test added then removed, name kept until slave removed."""
        self.classifier.handle(make_event(record(5, ENABLED)))
        self.classifier.handle(make_event(record(5, DISABLED)))

        self.assertEqual(self.emitted, [
            Transition(TransitionType.ADDED, "Mouse", 5),
            Transition(TransitionType.REMOVED, "Mouse", 5),
        ])
        self.assertEqual(self.cache.lookup(5), "Mouse")

    def test_slave_removed_evicts(self):
        """Test slave removed clears the cache slot."""
        self.classifier.handle(make_event(record(7, ENABLED)))
        self.assertEqual(self.cache.lookup(7), "Tablet")

        transitions = self.classifier.handle(make_event(record(7, REMOVED)))

        self.assertEqual(transitions, [])
        self.assertIsNone(self.cache.lookup(7))

    def test_disable_and_remove_same_record(self):
        """Test a combined record reports the cached name, then evicts."""
        self.cache.store(7, "Tablet")
        self.session.names.clear()

        transitions = self.classifier.handle(make_event(record(7, DISABLED | REMOVED)))

        self.assertEqual(transitions, [Transition(TransitionType.REMOVED, "Tablet", 7)])
        self.assertNotIn(7, self.cache)

    def test_no_enable_disable_flags(self):
        """Test events without enable/disable bits produce nothing."""
        event = make_event(record(5, HierarchyFlag.SLAVE_ADDED))
        self.assertEqual(self.classifier.handle(event), [])
        self.assertEqual(self.emitted, [])
        self.assertEqual(self.session.queries, [])

    def test_top_level_flags_gate_records(self):
        """Test record flags are ignored when the event flags lack enable/disable."""
        event = HierarchyEvent(
            flags=HierarchyFlag.SLAVE_ATTACHED,
            info=[record(5, ENABLED)],
        )
        self.assertEqual(self.classifier.handle(event), [])

    def test_master_devices_skipped(self):
        """Test master pointer/keyboard never produce transitions."""
        event = make_event(
            record(2, ENABLED, DeviceUse.MASTER_POINTER),
            record(3, DISABLED, DeviceUse.MASTER_KEYBOARD),
        )
        self.assertEqual(self.classifier.handle(event), [])
        self.assertEqual(self.session.queries, [])

    def test_master_skipped_slave_reported(self):
        """Test a slave in the same event as a master is still reported."""
        event = make_event(
            record(2, ENABLED, DeviceUse.MASTER_POINTER),
            record(5, ENABLED),
        )
        self.assertEqual(
            self.classifier.handle(event),
            [Transition(TransitionType.ADDED, "Mouse", 5)],
        )

    def test_unknown_device_removed(self):
        """Test disable of a never-seen device yields an empty name."""
        transitions = self.classifier.handle(make_event(record(30, DISABLED)))

        self.assertEqual(transitions, [Transition(TransitionType.REMOVED, "", 30)])
        self.assertNotIn(30, self.cache)

    def test_cache_preferred_over_query(self):
        """Test cached names avoid a server round-trip."""
        self.cache.store(5, "Cached Mouse")
        transitions = self.classifier.handle(make_event(record(5, ENABLED)))

        self.assertEqual(transitions[0].name, "Cached Mouse")
        self.assertEqual(self.session.queries, [])

    def test_query_result_cached(self):
        """Test a successful query seeds the cache."""
        self.classifier.handle(make_event(record(5, ENABLED)))
        self.classifier.handle(make_event(record(5, DISABLED)))
        self.assertEqual(self.session.queries, [5])

    def test_out_of_range_record_skipped(self):
        """Test records with ids beyond the cache are skipped."""
        event = make_event(record(500, ENABLED), record(5, ENABLED))
        transitions = self.classifier.handle(event)
        self.assertEqual(transitions, [Transition(TransitionType.ADDED, "Mouse", 5)])

    def test_settle_delay_before_each_transition(self):
        """Test the settle delay runs once per emitted transition."""
        self.classifier.settle_delay = 1.0
        self.classifier.handle(make_event(record(5, ENABLED), record(7, ENABLED)))
        self.assertEqual(self.sleep.call_args_list, [mock.call(1.0), mock.call(1.0)])

    def test_no_delay_without_transition(self):
        """Test ignored events do not sleep."""
        self.classifier.settle_delay = 1.0
        self.classifier.handle(make_event(record(7, REMOVED)))
        self.sleep.assert_not_called()

    def test_callback_error_does_not_abort(self):
        """Test a failing callback does not stop other callbacks."""
        def broken(transition):
            raise RuntimeError("boom")

        self.classifier.remove_transition_callback(self.emitted.append)
        self.classifier.add_transition_callback(broken)
        self.classifier.add_transition_callback(self.emitted.append)

        self.classifier.handle(make_event(record(5, ENABLED)))
        self.assertEqual(len(self.emitted), 1)

    def test_callback_receives_before_return(self):
        """Test callbacks fire as each transition is emitted."""
        seen_at_emit = []
        self.classifier.add_transition_callback(
            lambda t: seen_at_emit.append(len(self.emitted)))

        self.classifier.handle(make_event(record(5, ENABLED), record(7, ENABLED)))
        self.assertEqual(seen_at_emit, [1, 2])


if __name__ == "__main__":
    unittest.main()
