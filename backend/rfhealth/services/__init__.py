"""Services for ingestion, scoring and health aggregation."""
from .rate_limiter import RateLimiter, RateLimitDecision
from .classifier import EventType, classify_event
from .persistence import EventStore, PersistenceError
from .uplink_processor import UplinkProcessor, UplinkResult
from .device_events import DeviceEventProcessor
from .dispatcher import EventDispatcher
from .task_queue import BackgroundTaskQueue
from .scheduler import SchedulerService

__all__ = [
    "RateLimiter",
    "RateLimitDecision",
    "EventType",
    "classify_event",
    "EventStore",
    "PersistenceError",
    "UplinkProcessor",
    "UplinkResult",
    "DeviceEventProcessor",
    "EventDispatcher",
    "BackgroundTaskQueue",
    "SchedulerService",
]
