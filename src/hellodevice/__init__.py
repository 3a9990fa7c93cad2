"""
HelloDevice - input device hotplug notifications for X11.

This package watches the XInput2 device hierarchy and runs a
user-configured command whenever a physical input device is added,
removed, or found present at startup.

Modules:
- core: Data models, name cache, display session, classifier, event loop
- config: Configuration file handling
- cli: Command-line entry point
- simulation: Testing framework without an X server

Example usage:
    from hellodevice.core import DeviceClassifier, DeviceNameCache
    from hellodevice.simulation import SimulatedDisplayServer

    server = SimulatedDisplayServer()
    cache = DeviceNameCache()
    classifier = DeviceClassifier(cache, server, settle_delay=0)
    classifier.add_transition_callback(print)

    server.plug_device("USB Mouse")
    while server.pending_events():
        event = server.next_hierarchy_event()
        if event is not None:
            classifier.handle(event)
"""

__version__ = "0.1.0"
__author__ = "HelloDevice Project"

# Convenience imports
from .core import (
    DeviceClassifier,
    DeviceNameCache,
    DeviceUse,
    HierarchyFlag,
    HierarchyEvent,
    Transition,
    TransitionType,
    HotplugMonitor,
    ShutdownSignal,
    process_current_devices,
)

__all__ = [
    "__version__",
    "DeviceClassifier",
    "DeviceNameCache",
    "DeviceUse",
    "HierarchyFlag",
    "HierarchyEvent",
    "Transition",
    "TransitionType",
    "HotplugMonitor",
    "ShutdownSignal",
    "process_current_devices",
]
