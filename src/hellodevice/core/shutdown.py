"""
Pipe-backed termination signal.

The read end of the pipe sits in the same selector as the display
connection, so a signal wakes the event loop without any process-wide
flag polling.
"""

from typing import Dict, Iterable
import logging
import os
import signal

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownSignal:
    """
    Cancellation token readable through a file descriptor.

    trigger() may be called directly (tests) or from a signal handler
    installed with install().
    """

    def __init__(self):
        self._read_fd, self._write_fd = os.pipe()
        os.set_blocking(self._read_fd, False)
        os.set_blocking(self._write_fd, False)
        self._previous: Dict[int, object] = {}
        self._triggered = False
        self._closed = False

    def fileno(self) -> int:
        """Descriptor that becomes readable once triggered."""
        return self._read_fd

    @property
    def is_set(self) -> bool:
        return self._triggered

    def trigger(self) -> None:
        """Request shutdown. Safe to call from a signal handler."""
        self._triggered = True
        if self._closed:
            return
        try:
            os.write(self._write_fd, b"\0")
        except BlockingIOError:
            # Pipe already full, the loop will wake anyway
            return

    def drain(self) -> None:
        """Consume pending wake-up bytes."""
        while True:
            try:
                if not os.read(self._read_fd, 512):
                    return
            except BlockingIOError:
                return

    def _handle_signal(self, signum, frame) -> None:
        logger.info(f"Received {signal.Signals(signum).name}, shutting down")
        self.trigger()

    def install(self, signals: Iterable[int] = DEFAULT_SIGNALS) -> None:
        """Route the given signals to trigger()."""
        for signum in signals:
            self._previous[signum] = signal.signal(signum, self._handle_signal)

    def uninstall(self) -> None:
        """Restore the handlers that were active before install()."""
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)
        self._previous.clear()

    def close(self) -> None:
        if self._closed:
            return
        self.uninstall()
        self._closed = True
        os.close(self._read_fd)
        os.close(self._write_fd)

    def __enter__(self) -> "ShutdownSignal":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
