"""Webhook event classification.

The network server may announce the event type in the query string, in a
header, or inside the JSON body. Sources are checked in that order and the
first usable value wins.
"""
from enum import Enum
from typing import Any, Iterable, Mapping

# Unexpanded URL template variable left by misconfigured integrations
TEMPLATE_PLACEHOLDERS = {"{{event}}", "{event}"}

EVENT_HEADERS = ("x-event-type", "event-type", "x-chirpstack-event")
EVENT_BODY_FIELDS = ("eventType", "event", "type")


class EventType(str, Enum):
    """Kinds of webhook events the service understands."""

    UP = "up"
    STATUS = "status"
    JOIN = "join"
    ACK = "ack"
    TXACK = "txack"
    LOG = "log"
    LOCATION = "location"
    UNKNOWN = "unknown"

    @classmethod
    def from_tag(cls, tag: str) -> "EventType":
        """Map a classifier tag onto an event kind; unrecognized tags are UNKNOWN."""
        tag = (tag or "").strip().lower()
        if tag == "uplink":
            return cls.UP
        try:
            return cls(tag)
        except ValueError:
            return cls.UNKNOWN


def _usable(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip()) and value.strip() not in TEMPLATE_PLACEHOLDERS


def classify_event(query_values: Iterable[str], headers: Mapping[str, str], body: Any) -> str:
    """Return the lowercase event tag for a webhook call, or ``"unknown"``."""
    # 1. ?event=up (possibly repeated, with a template placeholder among the values)
    for value in query_values or ():
        if _usable(value):
            return value.strip().lower()

    # 2. Headers
    lowered = {key.lower(): value for key, value in (headers or {}).items()}
    for name in EVENT_HEADERS:
        value = lowered.get(name)
        if _usable(value):
            return value.strip().lower()

    # 3. Body fields
    if isinstance(body, Mapping):
        for field in EVENT_BODY_FIELDS:
            value = body.get(field)
            if _usable(value):
                return value.strip().lower()

    return EventType.UNKNOWN.value
