"""
Display Session - connection to the X server and the XInput2 extension.

Handles:
- Opening the display and negotiating XI 2.0
- Selecting hierarchy-changed events on the root window
- Translating raw generic events into HierarchyEvent models
- Device enumeration and name queries

Any object providing fileno(), pending_events(), next_hierarchy_event(),
query_device_name(), list_devices() and close() can stand in for a
DisplaySession (see hellodevice.simulation).
"""

from typing import List, Optional
import logging

from Xlib import display, error
from Xlib.ext import ge, xinput

from .errors import (
    ConnectionFailedError,
    DisplayConnectionLostError,
    EventFetchError,
    SubscriptionError,
    VersionNegotiationError,
)
from .models import DeviceInfo, HierarchyEvent, HierarchyInfo

logger = logging.getLogger(__name__)

XINPUT_EXTENSION = "XInputExtension"
XI_MAJOR = 2
XI_MINOR = 0


def _text(value) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value or ""


def _device_info(raw) -> DeviceInfo:
    """Convert an XIDeviceInfo reply entry."""
    return DeviceInfo(
        device_id=raw.deviceid,
        name=_text(raw.name),
        use=raw.use,
        enabled=bool(raw.enabled),
        attachment=raw.attachment,
    )


def _hierarchy_info(raw) -> HierarchyInfo:
    # python-xlib names the role field "type" in hierarchy records
    use = getattr(raw, "use", None)
    if use is None:
        use = raw.type
    return HierarchyInfo(
        device_id=raw.deviceid,
        use=use,
        flags=raw.flags,
        enabled=bool(raw.enabled),
        attachment=raw.attachment,
    )


class DisplaySession:
    """
    Owns the X connection and the hierarchy-change subscription.

    Use DisplaySession.open() rather than the constructor; it performs
    the version negotiation and event selection.
    """

    def __init__(self, dpy: display.Display, xi_opcode: int):
        self.dpy = dpy
        self.xi_opcode = xi_opcode
        self._closed = False

    @classmethod
    def open(cls, display_name: Optional[str] = None) -> "DisplaySession":
        """
        Connect to the X server and subscribe to hierarchy events.

        Args:
            display_name: X display to use (None = $DISPLAY)

        Returns:
            A ready session

        Raises:
            ConnectionFailedError: Display cannot be opened
            VersionNegotiationError: No XI 2.0 support
            SubscriptionError: Event selection failed
        """
        try:
            dpy = display.Display(display_name)
        except (error.DisplayError, OSError) as e:
            raise ConnectionFailedError(f"Failed to open X display: {e}") from e

        try:
            session = cls(dpy, cls._negotiate(dpy))
            session._subscribe()
        except BaseException:
            dpy.close()
            raise

        logger.info(f"Connected to X display {dpy.get_display_name()}")
        return session

    @staticmethod
    def _negotiate(dpy: display.Display) -> int:
        ext = dpy.query_extension(XINPUT_EXTENSION)
        if ext is None:
            raise VersionNegotiationError(f"{XINPUT_EXTENSION} not available")

        try:
            reply = dpy.xinput_query_version()
        except error.XError as e:
            raise VersionNegotiationError(f"Failed to set up XI2 version: {e}") from e

        version = (reply.major_version, reply.minor_version)
        if version < (XI_MAJOR, XI_MINOR):
            raise VersionNegotiationError(
                f"Server supports XI {version[0]}.{version[1]}, "
                f"need {XI_MAJOR}.{XI_MINOR}"
            )
        logger.debug(f"XInput {version[0]}.{version[1]}, opcode {ext.major_opcode}")
        return ext.major_opcode

    def _subscribe(self) -> None:
        root = self.dpy.screen().root
        catcher = error.CatchError()
        self.dpy.set_error_handler(catcher)
        try:
            root.xinput_select_events([
                (xinput.AllDevices, xinput.HierarchyChangedMask),
            ])
            self.dpy.sync()
        except error.XError as e:
            raise SubscriptionError(f"Failed to register for XI2 events: {e}") from e
        finally:
            self.dpy.set_error_handler(None)

        if catcher.get_error() is not None:
            raise SubscriptionError(
                f"Failed to register for XI2 events: {catcher.get_error()}"
            )
        self.dpy.flush()

    # === Event source ===

    def fileno(self) -> int:
        """Connection descriptor, readable when the server sent data."""
        return self.dpy.fileno()

    def pending_events(self) -> int:
        """Read whatever is available and return the number of queued events."""
        try:
            return self.dpy.pending_events()
        except error.ConnectionClosedError as e:
            raise DisplayConnectionLostError(f"X server closed the connection: {e}") from e

    def next_hierarchy_event(self) -> Optional[HierarchyEvent]:
        """
        Fetch the next event from the connection.

        Returns:
            The hierarchy event, or None if the event was of another kind

        Raises:
            EventFetchError: The event could not be read or decoded
            DisplayConnectionLostError: The server went away
        """
        try:
            ev = self.dpy.next_event()
        except error.ConnectionClosedError as e:
            raise DisplayConnectionLostError(f"X server closed the connection: {e}") from e
        except (error.XError, AttributeError, ValueError) as e:
            raise EventFetchError(f"Failed to fetch event: {e}") from e

        if (ev.type != ge.GenericEventCode or
                getattr(ev, "extension", None) != self.xi_opcode or
                getattr(ev, "evtype", None) != xinput.HierarchyChanged):
            return None

        data = getattr(ev, "data", None)
        if data is None:
            raise EventFetchError("Hierarchy event without payload")

        try:
            return HierarchyEvent(
                flags=data.flags,
                info=[_hierarchy_info(i) for i in data.info],
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise EventFetchError(f"Malformed hierarchy event: {e}") from e

    # === Device queries ===

    def list_devices(self) -> List[DeviceInfo]:
        """Enumerate all devices known to the server."""
        try:
            reply = self.dpy.xinput_query_device(xinput.AllDevices)
        except error.ConnectionClosedError as e:
            raise DisplayConnectionLostError(f"X server closed the connection: {e}") from e
        return [_device_info(d) for d in reply.devices]

    def query_device_name(self, device_id: int) -> Optional[str]:
        """
        Ask the server for a device's current name.

        Returns:
            The name, or None if the device no longer exists
        """
        try:
            reply = self.dpy.xinput_query_device(device_id)
        except error.ConnectionClosedError as e:
            raise DisplayConnectionLostError(f"X server closed the connection: {e}") from e
        except error.XError as e:
            logger.debug(f"Name query for device {device_id} failed: {e}")
            return None

        if not reply.devices:
            return None
        return _text(reply.devices[0].name)

    # === Lifecycle ===

    def close(self) -> None:
        """Close the display connection. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        try:
            self.dpy.close()
        except error.ConnectionClosedError as e:
            logger.debug(f"Connection already closed by server: {e}")
            return
        logger.debug("Display connection closed")

    def __enter__(self) -> "DisplaySession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
