"""Read-side queries for devices."""
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import offline_threshold
from ..models import Device, Reception
from ..schemas.device import DeviceResponse, DeviceHealth, DeviceDetail, DeviceReception, DeviceMetrics, SilentDevice
from ..utils.timestamps import utcnow
from .aggregation import STABILITY_SAMPLE_SIZE, connectivity_status, health_status

HEALTH_WINDOW = timedelta(hours=1)


async def list_devices(db: AsyncSession) -> List[DeviceResponse]:
    result = await db.execute(select(Device).order_by(Device.id))
    return [
        DeviceResponse(
            dev_eui=d.id,
            first_seen=d.first_seen,
            last_seen=d.last_seen,
            margin=d.margin,
            battery_level=d.battery_level,
        )
        for d in result.scalars().all()
    ]


async def device_health(db: AsyncSession) -> List[DeviceHealth]:
    """Average score, RF status and connectivity for devices heard in the last hour."""
    cutoff = utcnow() - HEALTH_WINDOW
    result = await db.execute(
        select(
            Reception.device_id,
            func.avg(Reception.rf_score),
            func.max(Reception.timestamp),
        )
        .where(Reception.timestamp >= cutoff)
        .group_by(Reception.device_id)
        .order_by(Reception.device_id)
    )

    health = []
    for device_id, avg_score, last_seen in result.all():
        avg_score = round(float(avg_score), 2)
        health.append(DeviceHealth(
            dev_eui=device_id,
            avg_score=avg_score,
            rf_status=health_status(avg_score),
            connectivity_status=connectivity_status(last_seen),
            last_seen=last_seen,
        ))
    return health


async def silent_devices(db: AsyncSession) -> List[SilentDevice]:
    """Devices whose last activity is older than the offline threshold."""
    now = utcnow()
    cutoff = now - offline_threshold()
    result = await db.execute(
        select(Device)
        .where(Device.last_seen.is_not(None), Device.last_seen < cutoff)
        .order_by(Device.last_seen)
    )
    return [
        SilentDevice(
            dev_eui=d.id,
            last_seen=d.last_seen,
            silent_minutes=int((now - d.last_seen).total_seconds() // 60),
        )
        for d in result.scalars().all()
    ]


async def device_detail(db: AsyncSession, dev_eui: str) -> Optional[DeviceDetail]:
    """Latest receptions of a device; None if unknown or never heard."""
    if await db.get(Device, dev_eui) is None:
        return None

    result = await db.execute(
        select(Reception)
        .where(Reception.device_id == dev_eui)
        .order_by(Reception.timestamp.desc())
        .limit(STABILITY_SAMPLE_SIZE)
    )
    receptions = result.scalars().all()
    if not receptions:
        return None

    avg_score = round(sum(r.rf_score for r in receptions) / len(receptions), 2)
    last_seen = receptions[0].timestamp
    return DeviceDetail(
        dev_eui=dev_eui,
        avg_score=avg_score,
        rf_status=health_status(avg_score),
        connectivity_status=connectivity_status(last_seen),
        last_seen=last_seen,
        uplinks=[
            DeviceReception(
                timestamp=r.timestamp,
                gateway_id=r.gateway_id,
                rssi=r.rssi,
                snr=r.snr,
                rf_score=r.rf_score,
                is_best=r.is_best,
            )
            for r in receptions
        ],
    )


async def device_metrics(
    db: AsyncSession,
    dev_eui: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> Optional[DeviceMetrics]:
    """Aggregates for a device, optionally bounded in time. None if unknown."""
    if await db.get(Device, dev_eui) is None:
        return None

    filters = [Reception.device_id == dev_eui]
    if start is not None:
        filters.append(Reception.timestamp >= start)
    if end is not None:
        filters.append(Reception.timestamp <= end)

    result = await db.execute(
        select(
            func.count(Reception.id),
            func.count(func.distinct(Reception.gateway_id)),
            func.avg(Reception.rf_score),
            func.min(Reception.rf_score),
            func.max(Reception.rf_score),
            func.avg(Reception.rssi),
            func.avg(Reception.snr),
            func.min(Reception.timestamp),
            func.max(Reception.timestamp),
        ).where(*filters)
    )
    (total, gateway_count, avg_score, min_score, max_score,
     avg_rssi, avg_snr, first_seen, last_seen) = result.one()
    if not total:
        return DeviceMetrics(dev_eui=dev_eui, total_uplinks=0, gateway_count=0)

    avg_score = round(float(avg_score), 2)
    return DeviceMetrics(
        dev_eui=dev_eui,
        total_uplinks=total,
        gateway_count=gateway_count,
        avg_rf_score=avg_score,
        min_rf_score=int(min_score),
        max_rf_score=int(max_score),
        avg_rssi=round(float(avg_rssi), 2),
        avg_snr=round(float(avg_snr), 2),
        first_seen=first_seen,
        last_seen=last_seen,
        rf_status=health_status(avg_score),
        connectivity_status=connectivity_status(last_seen),
    )
