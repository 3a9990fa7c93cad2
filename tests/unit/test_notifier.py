"""
Unit tests for the handler notifier.
"""

import subprocess
import unittest
from pathlib import Path
from unittest import mock

from hellodevice.core import (
    HandlerNotifier,
    HandlerSpawnError,
    Transition,
    TransitionType,
    handler_search_path,
)


class TestHandlerSearchPath(unittest.TestCase):
    """Tests for handler_search_path."""

    def test_prefixes_existing_path(self):
        """Test the handler dir goes first."""
        self.assertEqual(
            handler_search_path(Path("/home/u/.config/HelloDevice"), "/usr/bin:/bin"),
            "/home/u/.config/HelloDevice/:/usr/bin:/bin",
        )

    def test_empty_path(self):
        """Test an empty PATH."""
        self.assertEqual(handler_search_path(Path("/cfg"), ""), "/cfg/")


class TestHandlerNotifier(unittest.TestCase):
    """Tests for HandlerNotifier."""

    def setUp(self):
        """Create notifier with a fixed environment."""
        self.notifier = HandlerNotifier(
            "device-handler",
            Path("/home/u/.config/HelloDevice"),
            environ={"PATH": "/usr/bin", "HOME": "/home/u"},
        )
        self.transition = Transition(TransitionType.ADDED, "Logitech USB Mouse", 11)

    def test_argv(self):
        """Test the handler's argument layout."""
        self.assertEqual(self.notifier.build_argv(self.transition), [
            "device-handler", "-t", "added", "-i", "11", "Logitech USB Mouse",
        ])

    def test_argv_empty_name(self):
        """Test an unknown name is passed as an empty argument."""
        argv = self.notifier.build_argv(Transition(TransitionType.REMOVED, "", 30))
        self.assertEqual(argv[-1], "")
        self.assertEqual(len(argv), 6)

    def test_env(self):
        """Test PATH is extended and other variables kept."""
        env = self.notifier.build_env()
        self.assertEqual(env["PATH"], "/home/u/.config/HelloDevice/:/usr/bin")
        self.assertEqual(env["HOME"], "/home/u")

    def test_env_does_not_mutate_base(self):
        """Test the base environment is copied."""
        self.notifier.build_env()
        self.assertEqual(self.notifier.build_env()["PATH"],
                         "/home/u/.config/HelloDevice/:/usr/bin")

    @mock.patch("hellodevice.core.notifier.subprocess.Popen")
    def test_notify_spawns_without_waiting(self, popen):
        """Test notify launches the handler and does not wait."""
        popen.return_value.pid = 4242

        self.assertTrue(self.notifier.notify(self.transition))

        args, kwargs = popen.call_args
        self.assertEqual(args[0][0], "device-handler")
        self.assertEqual(kwargs["cwd"], str(Path.home()))
        self.assertEqual(kwargs["env"]["PATH"], "/home/u/.config/HelloDevice/:/usr/bin")
        self.assertTrue(kwargs["start_new_session"])
        popen.return_value.wait.assert_not_called()
        self.assertEqual(self.notifier.spawned, 1)

    @mock.patch("hellodevice.core.notifier.subprocess.Popen",
                side_effect=FileNotFoundError("device-handler"))
    def test_spawn_failure_logged(self, popen):
        """Test a missing handler is logged, not raised."""
        with self.assertLogs("hellodevice.core.notifier", level="ERROR") as logs:
            self.assertFalse(self.notifier.notify(self.transition))

        self.assertIn("Failed to spawn command device-handler", logs.output[0])
        self.assertEqual(self.notifier.failed, 1)

    @mock.patch("hellodevice.core.notifier.subprocess.Popen",
                side_effect=PermissionError("denied"))
    def test_spawn_raises_typed_error(self, popen):
        """Test spawn wraps OS errors."""
        with self.assertRaises(HandlerSpawnError):
            self.notifier.spawn(self.transition)

    @mock.patch("hellodevice.core.notifier.subprocess.Popen")
    def test_callable(self, popen):
        """Test the notifier can be used as a transition callback."""
        self.notifier(self.transition)
        popen.assert_called_once()

    @mock.patch("hellodevice.core.notifier.subprocess.Popen")
    def test_logs_transition(self, popen):
        """Test each notification is logged."""
        with self.assertLogs("hellodevice.core.notifier", level="INFO") as logs:
            self.notifier.notify(self.transition)
        self.assertIn("Logitech USB Mouse (11) added", logs.output[0])

    def test_real_spawn(self):
        """Test an actual handler found through the extended PATH."""
        notifier = HandlerNotifier("true", Path("/nonexistent"))
        process = notifier.spawn(self.transition)
        self.assertEqual(process.wait(timeout=5), 0)


if __name__ == "__main__":
    unittest.main()
