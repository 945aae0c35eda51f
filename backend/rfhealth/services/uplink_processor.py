"""Uplink processor - multi-gateway reception scoring.

One uplink frame may be heard by several gateways; the network server
reports each reception in ``rxInfo``. Processing:

1. Reject the payload if ``deviceInfo.devEui`` or ``rxInfo`` is unusable.
2. Drop individual receptions without a gateway id or with a non-finite
   RSSI/SNR; the rest continue.
3. Mark every reception whose SNR equals the maximum SNR as best. The
   first of them in input order is reported as the canonical best gateway.
4. Score each reception and store it in its own transaction, sequentially.
   A failed store is logged and the next reception is still attempted.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from ..utils.timestamps import parse_event_time, utcnow
from .persistence import EventStore, PersistenceError
from .rf_score import calculate_rf_score, is_finite_number

logger = logging.getLogger(__name__)


@dataclass
class ScoredReception:
    """A validated reception ready to be stored."""
    gateway_id: str
    rssi: float
    snr: float
    timestamp: datetime
    rf_score: int
    is_best: bool


@dataclass
class UplinkResult:
    """Summary of processing one uplink payload."""
    device_id: Optional[str] = None
    receptions: List[ScoredReception] = field(default_factory=list)
    dropped: int = 0
    stored: int = 0
    failed: int = 0
    best_gateway_id: Optional[str] = None
    rejected_reason: Optional[str] = None

    @property
    def rejected(self) -> bool:
        return self.rejected_reason is not None


def extract_device_id(payload: Any) -> Optional[str]:
    """Return ``deviceInfo.devEui`` if it is a non-empty string."""
    if not isinstance(payload, dict):
        return None
    device_info = payload.get("deviceInfo")
    if not isinstance(device_info, dict):
        return None
    dev_eui = device_info.get("devEui")
    if not isinstance(dev_eui, str) or not dev_eui.strip():
        return None
    return dev_eui.strip()


def _valid_reception(entry: Any) -> bool:
    if not isinstance(entry, dict):
        return False
    gateway_id = entry.get("gatewayId")
    if not isinstance(gateway_id, str) or not gateway_id.strip():
        return False
    return is_finite_number(entry.get("rssi")) and is_finite_number(entry.get("snr"))


def score_receptions(device_id: str, rx_info: List[Any], now: Optional[datetime] = None):
    """Validate and score the receptions of one transmission.

    Returns ``(scored, dropped_count, best_gateway_id)``.
    """
    now = now or utcnow()

    valid = []
    dropped = 0
    for index, entry in enumerate(rx_info):
        if not _valid_reception(entry):
            dropped += 1
            details = entry if isinstance(entry, dict) else {"entry": entry}
            logger.warning(
                f"Skipping invalid rxInfo[{index}] for device {device_id}: "
                f"gatewayId={details.get('gatewayId')!r} rssi={details.get('rssi')!r} snr={details.get('snr')!r}"
            )
            continue
        valid.append(entry)

    if not valid:
        return [], dropped, None

    best_snr = max(entry["snr"] for entry in valid)
    best_gateway_id = next(entry["gatewayId"].strip() for entry in valid if entry["snr"] == best_snr)

    scored = []
    for entry in valid:
        gateway_id = entry["gatewayId"].strip()
        timestamp = now
        raw_time = entry.get("time")
        if raw_time is not None:
            parsed = parse_event_time(raw_time)
            if parsed is None:
                logger.warning(
                    f"Invalid rxInfo time {raw_time!r} from gateway {gateway_id} "
                    f"for device {device_id}, using processing time"
                )
            else:
                timestamp = parsed

        scored.append(ScoredReception(
            gateway_id=gateway_id,
            rssi=float(entry["rssi"]),
            snr=float(entry["snr"]),
            timestamp=timestamp,
            rf_score=calculate_rf_score(entry["snr"], entry["rssi"]),
            is_best=entry["snr"] == best_snr,
        ))

    return scored, dropped, best_gateway_id


class UplinkProcessor:
    """Validates, scores and stores the receptions of uplink events."""

    def __init__(self, store: EventStore):
        self.store = store

    async def process(self, payload: Any) -> UplinkResult:
        """Process one uplink payload. Never raises for bad input or failed writes."""
        device_id = extract_device_id(payload)
        if device_id is None:
            logger.warning("Invalid uplink payload: missing or invalid devEui")
            return UplinkResult(rejected_reason="missing devEui")

        rx_info = payload.get("rxInfo")
        if not isinstance(rx_info, list) or not rx_info:
            logger.warning(f"Invalid uplink payload for device {device_id}: missing or empty rxInfo")
            return UplinkResult(device_id=device_id, rejected_reason="missing rxInfo")

        logger.debug(f"Processing uplink for device {device_id} with {len(rx_info)} receptions")

        scored, dropped, best_gateway_id = score_receptions(device_id, rx_info)
        result = UplinkResult(
            device_id=device_id,
            receptions=scored,
            dropped=dropped,
            best_gateway_id=best_gateway_id,
        )
        if not scored:
            logger.warning(f"Uplink for device {device_id} has no valid receptions, nothing stored")
            result.rejected_reason = "no valid receptions"
            return result

        for reception in scored:
            try:
                await self.store.store_reception(
                    device_id,
                    reception.gateway_id,
                    reception.timestamp,
                    reception.rssi,
                    reception.snr,
                    reception.rf_score,
                    reception.is_best,
                )
                result.stored += 1
            except PersistenceError as e:
                result.failed += 1
                logger.error(
                    f"Error storing reception for device {e.device_id} via gateway {e.gateway_id} "
                    f"at {reception.timestamp.isoformat()}: {e}"
                )

        logger.info(
            f"Uplink from {device_id}: stored {result.stored}/{len(scored)} receptions, "
            f"best gateway {best_gateway_id}"
            + (f", dropped {dropped}" if dropped else "")
            + (f", failed {result.failed}" if result.failed else "")
        )
        return result
