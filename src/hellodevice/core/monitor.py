"""
Hotplug Monitor - the event loop.

Waits on the display connection and the shutdown signal, drains pending
hierarchy events into the classifier, and stops when the signal fires.
"""

from enum import Enum, auto
import logging
import selectors

from .classifier import DeviceClassifier
from .errors import DisplayConnectionLostError, EventFetchError
from .shutdown import ShutdownSignal

logger = logging.getLogger(__name__)


class LoopState(Enum):
    """State of the event loop."""
    WAITING = auto()      # Blocked on the selector
    DRAINING = auto()     # Processing buffered events
    STOPPED = auto()      # Terminal


class HotplugMonitor:
    """
    Single-threaded event loop.

    Processing, including the classifier's settle delay, always runs to
    completion before the loop waits again. A shutdown is noticed at the
    next wait.
    """

    def __init__(self, session, classifier: DeviceClassifier,
                 shutdown: ShutdownSignal):
        self.session = session
        self.classifier = classifier
        self.shutdown = shutdown
        self.state = LoopState.WAITING
        self.wakeups = 0
        self.events_processed = 0

    def run(self) -> None:
        """
        Run until the shutdown signal fires.

        Raises:
            DisplayConnectionLostError: The server closed the connection
        """
        with selectors.DefaultSelector() as selector:
            selector.register(self.shutdown.fileno(), selectors.EVENT_READ, "shutdown")
            selector.register(self.session.fileno(), selectors.EVENT_READ, "display")

            # Events may already be buffered from setup round-trips
            self.drain()

            while self.state != LoopState.STOPPED:
                self.state = LoopState.WAITING
                ready = {key.data for key, _ in selector.select()}
                self.wakeups += 1

                if "shutdown" in ready:
                    self.shutdown.drain()
                    self.stop()
                    break

                if "display" in ready:
                    self.drain()

        logger.info(f"Event loop stopped after {self.wakeups} wake-up(s)")

    def stop(self) -> None:
        self.state = LoopState.STOPPED

    def drain(self) -> int:
        """
        Classify every event already buffered on the connection.

        Returns:
            Number of hierarchy events handled
        """
        self.state = LoopState.DRAINING
        handled = 0
        try:
            while self.session.pending_events():
                try:
                    event = self.session.next_hierarchy_event()
                except EventFetchError as e:
                    logger.warning(f"Ignoring unreadable event: {e}")
                    continue

                if event is None:
                    continue

                self.events_processed += 1
                handled += 1
                self.classifier.handle(event)
        except DisplayConnectionLostError as e:
            logger.error(f"Display connection lost: {e}")
            self.stop()
            raise
        return handled
