"""
Initial enumeration of devices present at startup.
"""

from typing import Callable, List, Optional
import logging

from .errors import DeviceIdOutOfRangeError
from .models import Transition, TransitionType
from .name_cache import DeviceNameCache

logger = logging.getLogger(__name__)


def process_current_devices(session, cache: DeviceNameCache,
                            on_transition: Optional[Callable[[Transition], None]] = None
                            ) -> List[Transition]:
    """
    Report every enabled physical device as present and seed the cache.

    The cache is cleared first, so running this again after a restart
    reflects only the devices the server knows now. Master devices and
    disabled devices produce no transition and no cache entry.

    Args:
        session: Display session to enumerate
        cache: Name cache to seed
        on_transition: Called for each present transition

    Returns:
        Present transitions, in enumeration order
    """
    cache.clear()
    transitions = []

    for device in session.list_devices():
        if device.is_master or not device.enabled:
            continue

        try:
            cache.store(device.device_id, device.name)
        except DeviceIdOutOfRangeError as e:
            logger.error(f"Skipping device {device.name}: {e}")
            continue

        transition = Transition(TransitionType.PRESENT, device.name, device.device_id)
        transitions.append(transition)
        if on_transition is not None:
            on_transition(transition)

    logger.info(f"Found {len(transitions)} device(s) at startup")
    return transitions
