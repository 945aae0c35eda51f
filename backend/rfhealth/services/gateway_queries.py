"""Read-side queries for gateways."""
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Gateway, Reception
from ..schemas.gateway import GatewayResponse, GatewayHealth, GatewayDetail, GatewayReception, GatewayMetrics
from ..utils.timestamps import utcnow
from .aggregation import STABILITY_SAMPLE_SIZE, health_status, stability_index

HEALTH_WINDOW = timedelta(hours=1)


async def recent_gateway_snr(db: AsyncSession, gateway_id: str, since: datetime) -> List[float]:
    """SNR of the latest receptions of a gateway since ``since``, newest first."""
    result = await db.execute(
        select(Reception.snr)
        .where(Reception.gateway_id == gateway_id, Reception.timestamp >= since)
        .order_by(Reception.timestamp.desc())
        .limit(STABILITY_SAMPLE_SIZE)
    )
    return [float(snr) for snr in result.scalars().all()]


async def list_gateways(db: AsyncSession) -> List[GatewayResponse]:
    result = await db.execute(select(Gateway).order_by(Gateway.id))
    return [
        GatewayResponse(gateway_id=g.id, first_seen=g.first_seen, last_seen=g.last_seen)
        for g in result.scalars().all()
    ]


async def gateway_health(db: AsyncSession) -> List[GatewayHealth]:
    """Average score, status and stability for gateways heard in the last hour."""
    cutoff = utcnow() - HEALTH_WINDOW
    result = await db.execute(
        select(
            Reception.gateway_id,
            func.avg(Reception.rf_score),
            func.max(Reception.timestamp),
        )
        .where(Reception.timestamp >= cutoff)
        .group_by(Reception.gateway_id)
        .order_by(Reception.gateway_id)
    )

    health = []
    for gateway_id, avg_score, last_seen in result.all():
        avg_score = round(float(avg_score), 2)
        health.append(GatewayHealth(
            gateway_id=gateway_id,
            avg_score=avg_score,
            status=health_status(avg_score),
            last_seen=last_seen,
            stability_index=stability_index(await recent_gateway_snr(db, gateway_id, cutoff)),
        ))
    return health


async def gateway_detail(db: AsyncSession, gateway_id: str) -> Optional[GatewayDetail]:
    """Latest receptions of a gateway; None if unknown or never heard."""
    if await db.get(Gateway, gateway_id) is None:
        return None

    result = await db.execute(
        select(Reception)
        .where(Reception.gateway_id == gateway_id)
        .order_by(Reception.timestamp.desc())
        .limit(STABILITY_SAMPLE_SIZE)
    )
    receptions = result.scalars().all()
    if not receptions:
        return None

    health_score = round(sum(r.rf_score for r in receptions) / len(receptions), 2)
    return GatewayDetail(
        gateway_id=gateway_id,
        health_score=health_score,
        status=health_status(health_score),
        stability_index=stability_index([r.snr for r in receptions]),
        uplinks=[
            GatewayReception(
                timestamp=r.timestamp,
                dev_eui=r.device_id,
                rssi=r.rssi,
                snr=r.snr,
                rf_score=r.rf_score,
                is_best=r.is_best,
            )
            for r in receptions
        ],
    )


async def gateway_metrics(
    db: AsyncSession,
    gateway_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> Optional[GatewayMetrics]:
    """Aggregates for a gateway, optionally bounded in time. None if unknown."""
    if await db.get(Gateway, gateway_id) is None:
        return None

    filters = [Reception.gateway_id == gateway_id]
    if start is not None:
        filters.append(Reception.timestamp >= start)
    if end is not None:
        filters.append(Reception.timestamp <= end)

    result = await db.execute(
        select(
            func.count(Reception.id),
            func.avg(Reception.rf_score),
            func.min(Reception.rf_score),
            func.max(Reception.rf_score),
            func.avg(Reception.rssi),
            func.avg(Reception.snr),
            func.min(Reception.timestamp),
            func.max(Reception.timestamp),
        ).where(*filters)
    )
    total, avg_score, min_score, max_score, avg_rssi, avg_snr, first_seen, last_seen = result.one()
    if not total:
        return GatewayMetrics(gateway_id=gateway_id, total_uplinks=0)

    snr_result = await db.execute(select(Reception.snr).where(*filters))
    return GatewayMetrics(
        gateway_id=gateway_id,
        total_uplinks=total,
        avg_rf_score=round(float(avg_score), 2),
        min_rf_score=int(min_score),
        max_rf_score=int(max_score),
        avg_rssi=round(float(avg_rssi), 2),
        avg_snr=round(float(avg_snr), 2),
        first_seen=first_seen,
        last_seen=last_seen,
        stability_index=stability_index([float(s) for s in snr_result.scalars().all()]),
    )
