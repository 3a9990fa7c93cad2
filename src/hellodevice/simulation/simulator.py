"""
Simulation framework for testing HelloDevice without an X server.

This module provides:
- Virtual input devices that can be plugged and unplugged
- A simulated display server usable wherever a DisplaySession is
- Scenario runner for automated testing
"""

import os
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, List, Optional, Union
import logging

from ..core import (
    DeviceInfo,
    DeviceUse,
    DeviceNameCache,
    DeviceClassifier,
    DisplayConnectionLostError,
    EventFetchError,
    HelloDeviceError,
    HierarchyEvent,
    HierarchyFlag,
    HierarchyInfo,
    HotplugMonitor,
    ShutdownSignal,
    Transition,
    process_current_devices,
)

logger = logging.getLogger(__name__)

# Ids the server assigns to the core devices
VIRTUAL_CORE_POINTER = 2
VIRTUAL_CORE_KEYBOARD = 3
FIRST_SLAVE_ID = 4


@dataclass
class VirtualDevice:
    """
    A virtual input device for simulation.

    Attached slaves are attached to the core pointer or core keyboard
    depending on their role.
    """
    id: int
    name: str
    use: DeviceUse = DeviceUse.SLAVE_POINTER
    enabled: bool = True
    attachment: int = 0

    def __post_init__(self):
        if not self.attachment and not self.use.is_master:
            if self.use == DeviceUse.SLAVE_KEYBOARD:
                self.attachment = VIRTUAL_CORE_KEYBOARD
            elif self.use == DeviceUse.SLAVE_POINTER:
                self.attachment = VIRTUAL_CORE_POINTER

    def to_device_info(self) -> DeviceInfo:
        """Convert to core DeviceInfo."""
        return DeviceInfo(
            device_id=self.id,
            name=self.name,
            use=self.use,
            enabled=self.enabled,
            attachment=self.attachment,
        )

    def hierarchy_info(self, flags: HierarchyFlag) -> HierarchyInfo:
        return HierarchyInfo(
            device_id=self.id,
            use=self.use,
            flags=flags,
            enabled=self.enabled,
            attachment=self.attachment,
        )


_FETCH_FAILURE = object()
_FOREIGN_EVENT = object()


class SimulatedDisplayServer:
    """
    In-process stand-in for an X server with XInput 2.

    Generates the hierarchy events a real server sends on hotplug and
    exposes them through the DisplaySession interface. A pipe makes
    fileno() readable while events are queued, so it works with the
    real event loop.
    """

    def __init__(self, with_core_devices: bool = True):
        self.devices: Dict[int, VirtualDevice] = {}
        self.event_log: List[HierarchyEvent] = []
        self._queue: Deque[Any] = deque()
        self._read_fd, self._write_fd = os.pipe()
        os.set_blocking(self._read_fd, False)
        self._connected = True
        self._closed = False
        self.name_queries: List[int] = []
        self._event_callbacks: List[Callable[[HierarchyEvent], None]] = []

        if with_core_devices:
            self.devices[VIRTUAL_CORE_POINTER] = VirtualDevice(
                VIRTUAL_CORE_POINTER, "Virtual core pointer", DeviceUse.MASTER_POINTER,
                attachment=VIRTUAL_CORE_KEYBOARD,
            )
            self.devices[VIRTUAL_CORE_KEYBOARD] = VirtualDevice(
                VIRTUAL_CORE_KEYBOARD, "Virtual core keyboard", DeviceUse.MASTER_KEYBOARD,
                attachment=VIRTUAL_CORE_POINTER,
            )

    def add_event_callback(self, callback: Callable[[HierarchyEvent], None]) -> None:
        """Add a callback for generated hierarchy events."""
        self._event_callbacks.append(callback)

    def next_free_id(self) -> int:
        device_id = FIRST_SLAVE_ID
        while device_id in self.devices:
            device_id += 1
        return device_id

    # === Event generation ===

    def _wake(self) -> None:
        os.write(self._write_fd, b"\0")

    def queue_event(self, event: HierarchyEvent) -> None:
        """Queue a hierarchy event for delivery."""
        self._queue.append(event)
        self.event_log.append(event)
        for callback in self._event_callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Event callback error: {e}")
        self._wake()

    def send_hierarchy(self, *records: HierarchyInfo) -> HierarchyEvent:
        """Queue an event whose top-level flags are the union of its records."""
        flags = HierarchyFlag.NONE
        for record in records:
            flags |= record.flags
        event = HierarchyEvent(flags=flags, info=list(records))
        self.queue_event(event)
        return event

    def queue_foreign_event(self) -> None:
        """Queue an event that is not a hierarchy change (e.g. a core event)."""
        self._queue.append(_FOREIGN_EVENT)
        self._wake()

    def inject_fetch_failure(self) -> None:
        """Make the next fetch fail as if the event were unreadable."""
        self._queue.append(_FETCH_FAILURE)
        self._wake()

    def close_connection(self) -> None:
        """Simulate the server going away."""
        self._connected = False
        self._wake()

    # === Hotplug ===

    def add_present_device(self, name: str, use: DeviceUse = DeviceUse.SLAVE_POINTER,
                           device_id: Optional[int] = None,
                           enabled: bool = True) -> VirtualDevice:
        """Add a device silently, as if it existed before we connected."""
        device_id = device_id if device_id is not None else self.next_free_id()
        device = VirtualDevice(device_id, name, use, enabled=enabled)
        self.devices[device_id] = device
        return device

    def plug_device(self, name: str, use: DeviceUse = DeviceUse.SLAVE_POINTER,
                    device_id: Optional[int] = None) -> VirtualDevice:
        """
        Hotplug a device.

        Like a real server, sends SLAVE_ADDED first and DEVICE_ENABLED
        in a second event once the device is enabled.
        """
        device = self.add_present_device(name, use, device_id, enabled=False)
        self.send_hierarchy(device.hierarchy_info(HierarchyFlag.SLAVE_ADDED))
        device.enabled = True
        self.send_hierarchy(device.hierarchy_info(HierarchyFlag.DEVICE_ENABLED))
        logger.info(f"Plugged {name} as device {device.id}")
        return device

    def disable_device(self, device_id: int) -> None:
        """Disable a device without removing it."""
        device = self.devices[device_id]
        device.enabled = False
        self.send_hierarchy(device.hierarchy_info(HierarchyFlag.DEVICE_DISABLED))

    def enable_device(self, device_id: int) -> None:
        """Re-enable a disabled device."""
        device = self.devices[device_id]
        device.enabled = True
        self.send_hierarchy(device.hierarchy_info(HierarchyFlag.DEVICE_ENABLED))

    def unplug_device(self, device_id: int) -> None:
        """
        Remove a device.

        Sends DEVICE_DISABLED, then SLAVE_REMOVED after the device is
        gone, so name queries no longer succeed.
        """
        if self.devices[device_id].enabled:
            self.disable_device(device_id)
        device = self.devices.pop(device_id)
        self.send_hierarchy(device.hierarchy_info(HierarchyFlag.SLAVE_REMOVED))
        logger.info(f"Unplugged {device.name} ({device_id})")

    # === DisplaySession interface ===

    def fileno(self) -> int:
        return self._read_fd

    def _check_connected(self) -> None:
        if not self._connected:
            raise DisplayConnectionLostError("Simulated server closed the connection")

    def pending_events(self) -> int:
        self._check_connected()
        # Consume wake-up bytes; the queue is the source of truth
        try:
            while os.read(self._read_fd, 512):
                pass
        except BlockingIOError:
            logger.debug("Wake-up pipe drained")
        return len(self._queue)

    def next_hierarchy_event(self) -> Optional[HierarchyEvent]:
        self._check_connected()
        item = self._queue.popleft()
        if item is _FETCH_FAILURE:
            raise EventFetchError("Simulated fetch failure")
        if item is _FOREIGN_EVENT:
            return None
        return item

    def query_device_name(self, device_id: int) -> Optional[str]:
        self.name_queries.append(device_id)
        device = self.devices.get(device_id)
        return device.name if device else None

    def list_devices(self) -> List[DeviceInfo]:
        return [d.to_device_info() for d in self.devices.values()]

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        os.close(self._read_fd)
        os.close(self._write_fd)

    def __enter__(self) -> "SimulatedDisplayServer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class SimulatedMonitor:
    """
    Synchronous harness around the simulated server.

    Queued events go through the real HotplugMonitor.drain(), only the
    selector wait is skipped, which is convenient for scenario steps.
    """

    def __init__(self, server: Optional[SimulatedDisplayServer] = None,
                 settle_delay: float = 0.0):
        self.server = server or SimulatedDisplayServer()
        self.cache = DeviceNameCache()
        self.classifier = DeviceClassifier(self.cache, self.server, settle_delay=settle_delay)
        self.transitions: List[Transition] = []
        self.classifier.add_transition_callback(self.transitions.append)
        self.shutdown = ShutdownSignal()
        self.loop = HotplugMonitor(self.server, self.classifier, self.shutdown)

    def start(self) -> List[Transition]:
        """Run initial enumeration."""
        return process_current_devices(self.server, self.cache, self.transitions.append)

    def process_pending(self) -> List[Transition]:
        """Drain every queued event and return the new transitions."""
        before = len(self.transitions)
        self.loop.drain()
        return self.transitions[before:]

    def close(self) -> None:
        self.shutdown.close()
        self.server.close()

    def __enter__(self) -> "SimulatedMonitor":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


Step = Callable[[SimulatedMonitor], bool]


@dataclass
class ScenarioResult:
    """What one scenario did and whether it held up."""
    name: str
    description: str = ""
    steps_total: int = 0
    steps_passed: int = 0
    failure: str = ""
    # Transitions reported while the scenario ran, enumeration included
    transitions: List[Transition] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.failure and self.steps_passed == self.steps_total


class ScenarioRunner:
    """
    Runs hotplug scenarios, each against a fresh simulated monitor.

    A scenario is a function that takes the monitor and returns its
    steps. Steps return True when the monitor behaved as expected.
    Used by the integration tests and the demo in run_tests.py.
    """

    def __init__(self, monitor_factory: Callable[[], SimulatedMonitor] = SimulatedMonitor):
        self.monitor_factory = monitor_factory
        self.results: List[ScenarioResult] = []

    @property
    def all_passed(self) -> bool:
        return all(r.passed for r in self.results)

    def run_scenario(self, name: str,
                     scenario: Callable[[SimulatedMonitor], List[Step]],
                     description: str = "") -> ScenarioResult:
        """
        Run one scenario to its first failing step.

        Args:
            name: Scenario name used in the report
            scenario: Builds the step list for a monitor
            description: Human-readable description

        Returns:
            The recorded result
        """
        logger.info(f"Running scenario: {name}")

        with self.monitor_factory() as monitor:
            steps = scenario(monitor)
            result = ScenarioResult(name, description, steps_total=len(steps))

            for number, step in enumerate(steps, start=1):
                try:
                    ok = step(monitor)
                except HelloDeviceError as e:
                    result.failure = f"Step {number} raised {type(e).__name__}: {e}"
                    break
                if not ok:
                    result.failure = f"Step {number} returned False"
                    break
                result.steps_passed += 1

            result.transitions = list(monitor.transitions)

        self.results.append(result)
        logger.info(f"Scenario '{name}': {'PASSED' if result.passed else 'FAILED'} "
                    f"with {len(result.transitions)} transition(s)")
        return result

    def get_report(self) -> str:
        """Summarize every scenario with the transitions it produced."""
        lines = ["=== Scenario Report ==="]

        for result in self.results:
            lines.append("")
            status = "PASS" if result.passed else "FAIL"
            lines.append(f"[{status}] {result.name} "
                         f"({result.steps_passed}/{result.steps_total} steps)")
            if result.description:
                lines.append(f"    {result.description}")
            for transition in result.transitions:
                lines.append(f"    -> {transition}")
            if result.failure:
                lines.append(f"    Error: {result.failure}")

        passed = sum(1 for r in self.results if r.passed)
        lines.append("")
        lines.append(f"Total: {passed}/{len(self.results)} passed")
        return "\n".join(lines)


# === Pre-built scenarios ===

def create_test_devices(server: SimulatedDisplayServer) -> List[VirtualDevice]:
    """Add a standard set of devices present before startup."""
    return [
        server.add_present_device("Virtual Mouse", DeviceUse.SLAVE_POINTER),
        server.add_present_device("Virtual Keyboard", DeviceUse.SLAVE_KEYBOARD),
        server.add_present_device("Disabled Touchpad", DeviceUse.SLAVE_POINTER, enabled=False),
    ]


def _last(monitor: SimulatedMonitor, count: int) -> List[str]:
    return [str(t) for t in monitor.transitions[-count:]]


def scenario_startup(monitor: SimulatedMonitor) -> List[Callable]:
    """
    Startup scenario.

    Tests that enabled physical devices are reported as present.
    """
    def step1_setup(mon: SimulatedMonitor) -> bool:
        """Add devices that exist before startup."""
        create_test_devices(mon.server)
        return len(mon.server.devices) == 5

    def step2_enumerate(mon: SimulatedMonitor) -> bool:
        """Run initial enumeration."""
        present = mon.start()
        return [t.name for t in present] == ["Virtual Mouse", "Virtual Keyboard"]

    def step3_cache_seeded(mon: SimulatedMonitor) -> bool:
        """Verify only the reported devices are cached."""
        return len(mon.cache) == 2

    return [step1_setup, step2_enumerate, step3_cache_seeded]


def scenario_device_hotplug(monitor: SimulatedMonitor) -> List[Callable]:
    """
    Device hot-plug scenario.

    Tests plugging, unplugging and re-plugging a device at runtime.
    """
    state: Dict[str, Union[int, None]] = {"id": None}

    def step1_plug(mon: SimulatedMonitor) -> bool:
        """Plug a mouse."""
        state["id"] = mon.server.plug_device("Hotplug Mouse").id
        mon.process_pending()
        return _last(mon, 1) == [f"Hotplug Mouse ({state['id']}) added"]

    def step2_unplug(mon: SimulatedMonitor) -> bool:
        """Unplug it; the name must come from the cache."""
        mon.server.unplug_device(state["id"])
        mon.process_pending()
        return (_last(mon, 1) == [f"Hotplug Mouse ({state['id']}) removed"] and
                state["id"] not in mon.cache)

    def step3_replug(mon: SimulatedMonitor) -> bool:
        """Plug it again under the same id."""
        mon.server.plug_device("Hotplug Mouse", device_id=state["id"])
        mon.process_pending()
        return _last(mon, 1) == [f"Hotplug Mouse ({state['id']}) added"]

    return [step1_plug, step2_unplug, step3_replug]


def scenario_master_filtering(monitor: SimulatedMonitor) -> List[Callable]:
    """
    Master filtering scenario.

    Tests that virtual master devices are never reported.
    """
    def step1_add_master(mon: SimulatedMonitor) -> bool:
        """A new master pair appears and is enabled."""
        before = len(mon.transitions)
        pointer = VirtualDevice(mon.server.next_free_id(), "Second pointer",
                                DeviceUse.MASTER_POINTER)
        mon.server.devices[pointer.id] = pointer
        mon.server.send_hierarchy(pointer.hierarchy_info(
            HierarchyFlag.MASTER_ADDED | HierarchyFlag.DEVICE_ENABLED))
        mon.process_pending()
        return len(mon.transitions) == before

    def step2_slave_still_reported(mon: SimulatedMonitor) -> bool:
        """A slave enabled at the same time is still reported."""
        mon.server.plug_device("Pen", DeviceUse.SLAVE_POINTER)
        mon.process_pending()
        return _last(mon, 1)[0].startswith("Pen (")

    return [step1_add_master, step2_slave_still_reported]
