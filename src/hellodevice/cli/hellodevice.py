#!/usr/bin/env python3
"""
hellodevice: Run a command whenever an input device is plugged or unplugged.

On startup every enabled physical device is reported as "present". After
that, each hotplug produces an "added" or "removed" notification. The
command is read from ~/.config/HelloDevice/HelloDevice.conf.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .. import __version__
from ..config import Config, ConfigManager
from ..core import (
    ConfigError,
    DeviceClassifier,
    DeviceNameCache,
    DisplayConnectionLostError,
    DisplaySession,
    HandlerNotifier,
    HotplugMonitor,
    SessionError,
    ShutdownSignal,
    process_current_devices,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(verbose: bool = False, log_file: str = "") -> None:
    """Configure the root logger for the daemon."""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(Path(log_file).expanduser()))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


class HelloDevice:
    """
    High-level wiring of the monitor.

    Bridges between the configuration, the display session and the
    handler notifier.
    """

    def __init__(self, config: Config, handler_dir: Path, session,
                 shutdown: ShutdownSignal):
        self.config = config
        self.session = session
        self.shutdown = shutdown
        self.cache = DeviceNameCache()
        self.notifier = HandlerNotifier(config.command, handler_dir)
        self.classifier = DeviceClassifier(
            self.cache, session, settle_delay=config.settle_delay,
        )
        self.classifier.add_transition_callback(self.notifier)
        self.monitor = HotplugMonitor(session, self.classifier, shutdown)

    def run(self) -> None:
        """Report present devices, then monitor until shut down."""
        process_current_devices(self.session, self.cache, self.notifier)
        self.monitor.run()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="hellodevice",
        description="Run a handler when input devices are added or removed",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
The handler is called as:
  <command> -t <added|removed|present> -i <device id> <device name>

Configuration (~/.config/HelloDevice/HelloDevice.conf):
  [General]
  command=my-device-handler
""",
    )

    parser.add_argument(
        "--config-dir",
        help="Override configuration directory",
    )
    parser.add_argument(
        "--display",
        help="X display to connect to (default: $DISPLAY)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    # A signal during setup is held in the pipe and ends the loop at its
    # first wait.
    with ShutdownSignal() as shutdown:
        shutdown.install()

        config_manager = ConfigManager(Path(args.config_dir) if args.config_dir else None)
        try:
            config = config_manager.load_config()
        except ConfigError as e:
            logger.error(str(e))
            return 1

        if config.verbose or config.log_file:
            setup_logging(args.verbose or config.verbose, config.log_file)

        try:
            session = DisplaySession.open(args.display)
        except SessionError as e:
            logger.error(str(e))
            return 1

        with session:
            app = HelloDevice(config, config_manager.handler_dir, session, shutdown)
            try:
                app.run()
            except DisplayConnectionLostError as e:
                logger.error(f"Stopped monitoring: {e}")
                return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
