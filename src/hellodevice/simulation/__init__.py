"""
Simulation module for testing HelloDevice without an X server.

Provides virtual devices, a simulated display server, and test scenarios.
"""

from .simulator import (
    SimulatedDisplayServer,
    SimulatedMonitor,
    VirtualDevice,
    ScenarioResult,
    ScenarioRunner,
    create_test_devices,
    scenario_startup,
    scenario_device_hotplug,
    scenario_master_filtering,
    VIRTUAL_CORE_POINTER,
    VIRTUAL_CORE_KEYBOARD,
)

__all__ = [
    "SimulatedDisplayServer",
    "SimulatedMonitor",
    "VirtualDevice",
    "ScenarioResult",
    "ScenarioRunner",
    "create_test_devices",
    "scenario_startup",
    "scenario_device_hotplug",
    "scenario_master_filtering",
    "VIRTUAL_CORE_POINTER",
    "VIRTUAL_CORE_KEYBOARD",
]
