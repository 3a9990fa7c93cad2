"""
Device Classifier - turns hierarchy events into transitions.

This is the heart of HelloDevice. For each hierarchy-changed event it:
- Skips master (virtual) devices
- Resolves the device name from the cache or the server
- Classifies the change as added or removed
- Evicts names of devices the server has removed
"""

from typing import Callable, List
import logging
import time

from .errors import DeviceIdOutOfRangeError
from .models import (
    ENABLE_DISABLE,
    HierarchyEvent,
    HierarchyFlag,
    HierarchyInfo,
    Transition,
    TransitionType,
)
from .name_cache import DeviceNameCache

logger = logging.getLogger(__name__)

TransitionCallback = Callable[[Transition], None]

# Gives the desktop environment a chance to configure the device first,
# so the handler's changes land on top of it.
DEFAULT_SETTLE_DELAY = 1.0


class DeviceClassifier:
    """
    Classifies hierarchy events against the device name cache.

    Transitions are returned from handle() and also passed to every
    registered callback as soon as each one is emitted.
    """

    def __init__(self, cache: DeviceNameCache, session,
                 settle_delay: float = DEFAULT_SETTLE_DELAY,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize the classifier.

        Args:
            cache: Name cache shared with initial enumeration
            session: Display session used for name lookups
            settle_delay: Seconds to wait before emitting each transition
            sleep: Sleep function (replaceable in tests)
        """
        self.cache = cache
        self.session = session
        self.settle_delay = settle_delay
        self._sleep = sleep
        self._callbacks: List[TransitionCallback] = []

    def add_transition_callback(self, callback: TransitionCallback) -> None:
        """Add a callback invoked for every emitted transition."""
        self._callbacks.append(callback)

    def remove_transition_callback(self, callback: TransitionCallback) -> None:
        """Remove a transition callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _emit(self, transition: Transition) -> None:
        for callback in self._callbacks:
            try:
                callback(transition)
            except Exception as e:
                logger.error(f"Transition callback error for {transition}: {e}")

    def resolve_name(self, device_id: int) -> str:
        """
        Get a device name, preferring the cache.

        On a cache miss the server is queried and a successful answer is
        cached. Returns an empty string if neither knows the device.
        """
        name = self.cache.lookup(device_id)
        if name is not None:
            return name

        name = self.session.query_device_name(device_id)
        if name:
            self.cache.store(device_id, name)
            return name

        logger.warning(f"No name known for device {device_id}")
        return ""

    def handle(self, event: HierarchyEvent) -> List[Transition]:
        """
        Process one hierarchy event.

        Args:
            event: The hierarchy event to classify

        Returns:
            Transitions emitted, in record order
        """
        # Without enable/disable bits nothing is reported, but removals
        # still have to clear their cache slots.
        classify = event.has_flag(ENABLE_DISABLE)
        if not classify and not event.has_flag(HierarchyFlag.SLAVE_REMOVED):
            logger.debug(f"Ignoring hierarchy event with flags {event.flags!r}")
            return []

        transitions = []
        for info in event.info:
            try:
                transition = self._handle_info(info, classify)
            except DeviceIdOutOfRangeError as e:
                logger.error(f"Skipping hierarchy record: {e}")
                continue
            if transition is not None:
                transitions.append(transition)
        return transitions

    def _handle_info(self, info: HierarchyInfo, classify: bool = True):
        transition = None

        if classify and info.has_flag(ENABLE_DISABLE) and not info.is_master:
            name = self.resolve_name(info.device_id)

            if info.has_flag(HierarchyFlag.DEVICE_ENABLED):
                transition_type = TransitionType.ADDED
            else:
                transition_type = TransitionType.REMOVED

            if self.settle_delay > 0:
                self._sleep(self.settle_delay)

            transition = Transition(transition_type, name, info.device_id)
            logger.debug(f"Classified {transition}")
            self._emit(transition)

        # Runs after the transition so a disable+remove record still
        # reports the cached name.
        if info.has_flag(HierarchyFlag.SLAVE_REMOVED):
            self.cache.evict(info.device_id)

        return transition
