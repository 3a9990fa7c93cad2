"""
Core module for HelloDevice.

This module provides the fundamental building blocks:
- Data models for devices, hierarchy events and transitions
- The device name cache
- The display session, classifier, enumeration and event loop
- The handler notifier
"""

from .models import (
    DeviceUse,
    HierarchyFlag,
    TransitionType,
    DeviceInfo,
    HierarchyInfo,
    HierarchyEvent,
    Transition,
)

from .errors import (
    HelloDeviceError,
    ConfigError,
    ConfigMissingError,
    ConfigMalformedError,
    SessionError,
    ConnectionFailedError,
    VersionNegotiationError,
    SubscriptionError,
    EventFetchError,
    DisplayConnectionLostError,
    DeviceIdOutOfRangeError,
    HandlerSpawnError,
)

from .name_cache import DeviceNameCache, MAX_DEVICES
from .classifier import DeviceClassifier, TransitionCallback, DEFAULT_SETTLE_DELAY
from .enumeration import process_current_devices
from .shutdown import ShutdownSignal
from .monitor import HotplugMonitor, LoopState
from .notifier import HandlerNotifier, handler_search_path
from .session import DisplaySession

__all__ = [
    # Models
    "DeviceUse",
    "HierarchyFlag",
    "TransitionType",
    "DeviceInfo",
    "HierarchyInfo",
    "HierarchyEvent",
    "Transition",
    # Errors
    "HelloDeviceError",
    "ConfigError",
    "ConfigMissingError",
    "ConfigMalformedError",
    "SessionError",
    "ConnectionFailedError",
    "VersionNegotiationError",
    "SubscriptionError",
    "EventFetchError",
    "DisplayConnectionLostError",
    "DeviceIdOutOfRangeError",
    "HandlerSpawnError",
    # Monitoring
    "DeviceNameCache",
    "MAX_DEVICES",
    "DeviceClassifier",
    "TransitionCallback",
    "DEFAULT_SETTLE_DELAY",
    "process_current_devices",
    "ShutdownSignal",
    "HotplugMonitor",
    "LoopState",
    "HandlerNotifier",
    "handler_search_path",
    "DisplaySession",
]
