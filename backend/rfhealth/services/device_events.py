"""Handlers for non-uplink device events (status, join, ack, txack, log, location)."""
import logging
from datetime import datetime
from typing import Any, Optional

from ..utils.timestamps import parse_event_time, utcnow
from .persistence import EventStore, PersistenceError
from .rf_score import is_finite_number
from .uplink_processor import extract_device_id

logger = logging.getLogger(__name__)

STORED_LOG_LEVELS = {"ERROR", "WARN"}


def resolve_event_time(payload: dict, device_id: str, kind: str) -> datetime:
    """Use ``payload.time`` when parseable, otherwise the processing time."""
    raw_time = payload.get("time")
    if raw_time is None or raw_time == "":
        return utcnow()
    parsed = parse_event_time(raw_time)
    if parsed is None:
        logger.warning(f"Invalid timestamp in {kind} payload for device {device_id}, using current time: {raw_time!r}")
        return utcnow()
    return parsed


def _optional_number(value: Any) -> Optional[float]:
    return value if is_finite_number(value) else None


class DeviceEventProcessor:
    """Validates device events and records them.

    Every handler returns True when a row was written and False when the
    payload was skipped or the write failed. Nothing is raised.
    """

    def __init__(self, store: EventStore):
        self.store = store

    def _device_id(self, payload: Any, kind: str) -> Optional[str]:
        if not isinstance(payload, dict):
            logger.warning(f"Invalid {kind} payload: not an object")
            return None
        device_id = extract_device_id(payload)
        if device_id is None:
            logger.warning(f"Invalid {kind} payload: missing or invalid devEui")
        return device_id

    async def _write(self, kind: str, device_id: str, coro) -> bool:
        try:
            await coro
        except PersistenceError as e:
            logger.error(f"Error storing {kind} for device {device_id}: {e}")
            return False
        logger.debug(f"Stored {kind} event for device {device_id}")
        return True

    async def process_status(self, payload: Any) -> bool:
        device_id = self._device_id(payload, "status")
        if device_id is None:
            return False
        timestamp = resolve_event_time(payload, device_id, "status")
        margin = payload.get("margin")
        margin = int(margin) if is_finite_number(margin) else None
        battery_level = _optional_number(payload.get("batteryLevel"))
        return await self._write(
            "status", device_id, self.store.store_status(device_id, timestamp, margin, battery_level),
        )

    async def process_join(self, payload: Any) -> bool:
        device_id = self._device_id(payload, "join")
        if device_id is None:
            return False
        timestamp = resolve_event_time(payload, device_id, "join")
        return await self._write("join", device_id, self.store.store_join(device_id, timestamp))

    async def process_ack(self, payload: Any) -> bool:
        device_id = self._device_id(payload, "ack")
        if device_id is None:
            return False
        timestamp = resolve_event_time(payload, device_id, "ack")
        acknowledged = payload.get("acknowledged")
        acknowledged = acknowledged if isinstance(acknowledged, bool) else None
        return await self._write(
            "ack", device_id,
            self.store.store_downlink(device_id, timestamp, "ack", acknowledged=acknowledged),
        )

    async def process_txack(self, payload: Any) -> bool:
        device_id = self._device_id(payload, "txack")
        if device_id is None:
            return False
        timestamp = resolve_event_time(payload, device_id, "txack")
        fcnt_down = payload.get("fCntDown")
        fcnt_down = int(fcnt_down) if is_finite_number(fcnt_down) else None
        return await self._write(
            "txack", device_id,
            self.store.store_downlink(device_id, timestamp, "txack", fcnt_down=fcnt_down),
        )

    async def process_log(self, payload: Any) -> bool:
        if not isinstance(payload, dict):
            logger.warning("Invalid log payload: not an object")
            return False
        device_id = extract_device_id(payload)
        if device_id is None:
            # Gateway-level logs carry no device
            logger.debug("Log event without device EUI, skipping")
            return False

        level = payload.get("level")
        if not isinstance(level, str) or not level.strip():
            logger.debug(f"Log event without level for device {device_id}, skipping")
            return False
        level = level.strip().upper()
        if level not in STORED_LOG_LEVELS:
            logger.debug(f"Log event level {level} for device {device_id} not stored")
            return False

        code = payload.get("code")
        code = str(code) if code not in (None, "") else None
        description = payload.get("description") or payload.get("message") or None
        timestamp = resolve_event_time(payload, device_id, "log")
        return await self._write(
            "log", device_id, self.store.store_log(device_id, timestamp, level, code, description),
        )

    async def process_location(self, payload: Any) -> bool:
        device_id = self._device_id(payload, "location")
        if device_id is None:
            return False

        location = payload.get("location")
        if not isinstance(location, dict):
            logger.warning(f"Invalid location payload for device {device_id}: missing location object")
            return False

        latitude = location.get("latitude")
        if not is_finite_number(latitude) or not -90 <= latitude <= 90:
            logger.warning(f"Invalid location payload for device {device_id}: latitude {latitude!r}")
            return False

        longitude = location.get("longitude")
        if not is_finite_number(longitude) or not -180 <= longitude <= 180:
            logger.warning(f"Invalid location payload for device {device_id}: longitude {longitude!r}")
            return False

        altitude = location.get("altitude")
        if altitude is not None and (not is_finite_number(altitude) or not -500 <= altitude <= 9000):
            logger.warning(f"Altitude {altitude!r} out of range for device {device_id}, ignoring")
            altitude = None

        timestamp = resolve_event_time(payload, device_id, "location")
        return await self._write(
            "location", device_id,
            self.store.store_location(device_id, timestamp, float(latitude), float(longitude),
                                      float(altitude) if altitude is not None else None),
        )
