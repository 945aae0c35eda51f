"""Network-wide read queries: last uplink, reliability and the composite health score."""
import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Device, Reception, DownlinkEvent, DeviceLog
from ..schemas.health import LastUplink, UplinkReliability, HealthComponent, NetworkHealthComponents, NetworkHealth
from ..utils.timestamps import utcnow
from .aggregation import population_stddev, reliability_class

logger = logging.getLogger(__name__)

RELIABILITY_WINDOW = timedelta(hours=1)
NETWORK_HEALTH_WINDOW = timedelta(hours=24)

# Composite score weights
RF_QUALITY_WEIGHT = 0.40
BATTERY_WEIGHT = 0.20
DOWNLINK_WEIGHT = 0.20
ERROR_RATE_WEIGHT = 0.20

# Neutral values when a component has no data
DEFAULT_BATTERY_SCORE = 50.0
DEFAULT_DOWNLINK_SCORE = 50.0
DEFAULT_ERROR_RATE_SCORE = 100.0

# Each percent of error logs per uplink costs this many points
ERROR_RATE_PENALTY = 5


def _clamp(value: float) -> float:
    return min(100.0, max(0.0, value))


def _component(score: float, weight: float, data_points: Optional[int] = None) -> HealthComponent:
    return HealthComponent(
        score=round(score, 2),
        weight=weight,
        contribution=round(score * weight, 2),
        data_points=data_points,
    )


async def last_uplink(db: AsyncSession) -> Optional[LastUplink]:
    result = await db.execute(
        select(Reception).order_by(Reception.timestamp.desc(), Reception.id.desc()).limit(1)
    )
    reception = result.scalar_one_or_none()
    if reception is None:
        return None
    return LastUplink(
        timestamp=reception.timestamp,
        dev_eui=reception.device_id,
        gateway_id=reception.gateway_id,
        rssi=reception.rssi,
        snr=reception.snr,
        rf_score=reception.rf_score,
        is_best=reception.is_best,
    )


async def uplink_reliability(db: AsyncSession) -> UplinkReliability:
    """Spread of SNR and RSSI across all receptions of the last hour."""
    cutoff = utcnow() - RELIABILITY_WINDOW
    result = await db.execute(
        select(Reception.snr, Reception.rssi).where(Reception.timestamp >= cutoff)
    )
    rows = result.all()
    if not rows:
        return UplinkReliability(sample_count=0, classification=reliability_class(None, None))

    stddev_snr = round(population_stddev([float(snr) for snr, _ in rows]), 2)
    stddev_rssi = round(population_stddev([float(rssi) for _, rssi in rows]), 2)
    return UplinkReliability(
        stddev_snr=stddev_snr,
        stddev_rssi=stddev_rssi,
        sample_count=len(rows),
        classification=reliability_class(stddev_snr, stddev_rssi),
    )


async def network_health(db: AsyncSession) -> NetworkHealth:
    """Weighted 0-100 score over the last 24 hours.

    RF quality 40%, battery 20%, downlink success 20%, error rate 20%.
    """
    now = utcnow()
    cutoff = now - NETWORK_HEALTH_WINDOW

    # RF quality
    rf_result = await db.execute(
        select(func.avg(Reception.rf_score), func.count(Reception.id)).where(Reception.timestamp >= cutoff)
    )
    avg_rf_score, uplink_count = rf_result.one()
    rf_quality = _clamp(float(avg_rf_score)) if avg_rf_score is not None else 0.0

    # Battery health, 0-255 scales normalized to 0-100
    battery_result = await db.execute(
        select(func.avg(Device.battery_level), func.count(Device.id))
        .where(Device.battery_level.is_not(None), Device.last_seen >= cutoff)
    )
    avg_battery, battery_devices = battery_result.one()
    battery = DEFAULT_BATTERY_SCORE
    if avg_battery is not None and battery_devices:
        avg_battery = float(avg_battery)
        battery = _clamp(avg_battery / 2.55 if avg_battery > 100 else avg_battery)

    # Downlink success: acknowledged acks per transmission attempt
    attempts = (await db.execute(
        select(func.count(DownlinkEvent.id))
        .where(DownlinkEvent.event_type == "txack", DownlinkEvent.timestamp >= cutoff)
    )).scalar() or 0
    acked = (await db.execute(
        select(func.count(DownlinkEvent.id))
        .where(
            DownlinkEvent.event_type == "ack",
            DownlinkEvent.acknowledged.is_(True),
            DownlinkEvent.timestamp >= cutoff,
        )
    )).scalar() or 0
    downlink = _clamp(acked / attempts * 100) if attempts else DEFAULT_DOWNLINK_SCORE

    # Error rate relative to uplink activity
    errors = (await db.execute(
        select(func.count(DeviceLog.id))
        .where(DeviceLog.level == "ERROR", DeviceLog.timestamp >= cutoff)
    )).scalar() or 0
    error_rate = DEFAULT_ERROR_RATE_SCORE
    if uplink_count:
        error_rate = _clamp(100 - (errors / uplink_count * 100) * ERROR_RATE_PENALTY)

    composite = (
        rf_quality * RF_QUALITY_WEIGHT
        + battery * BATTERY_WEIGHT
        + downlink * DOWNLINK_WEIGHT
        + error_rate * ERROR_RATE_WEIGHT
    )
    logger.debug(
        f"Network health {composite:.2f} (rf={rf_quality:.1f}, battery={battery:.1f}, "
        f"downlink={downlink:.1f}, errors={error_rate:.1f})"
    )
    return NetworkHealth(
        score=_clamp(round(composite, 2)),
        components=NetworkHealthComponents(
            rf_quality=_component(rf_quality, RF_QUALITY_WEIGHT, uplink_count),
            battery_health=_component(battery, BATTERY_WEIGHT),
            downlink_success=_component(downlink, DOWNLINK_WEIGHT),
            error_rate=_component(error_rate, ERROR_RATE_WEIGHT),
        ),
        timestamp=now,
    )
