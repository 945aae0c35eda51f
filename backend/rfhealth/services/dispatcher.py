"""Routes classified webhook events to their handler."""
import logging
from typing import Any, Awaitable, Callable, Dict

from .classifier import EventType
from .device_events import DeviceEventProcessor
from .uplink_processor import UplinkProcessor

logger = logging.getLogger(__name__)


class EventDispatcher:
    """One handler per event kind; UNKNOWN and unmapped kinds are ignored."""

    def __init__(self, uplinks: UplinkProcessor, device_events: DeviceEventProcessor):
        self.handlers: Dict[EventType, Callable[[Any], Awaitable[Any]]] = {
            EventType.UP: uplinks.process,
            EventType.STATUS: device_events.process_status,
            EventType.JOIN: device_events.process_join,
            EventType.ACK: device_events.process_ack,
            EventType.TXACK: device_events.process_txack,
            EventType.LOG: device_events.process_log,
            EventType.LOCATION: device_events.process_location,
        }

    async def dispatch(self, event_type: EventType, payload: Any):
        handler = self.handlers.get(event_type)
        if handler is None:
            logger.debug(f"Ignoring webhook event of type {event_type.value}")
            return None
        return await handler(payload)
