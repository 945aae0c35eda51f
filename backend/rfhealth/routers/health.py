"""Liveness and last-uplink endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.health import UplinkReliability
from ..services import network_queries

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    return {"status": "ok"}


@router.get("/api/last-uplink")
async def get_last_uplink(db: AsyncSession = Depends(get_db)):
    """Most recent reception across all gateways, or ``{}`` when there is none."""
    uplink = await network_queries.last_uplink(db)
    if uplink is None:
        return {}
    return uplink.model_dump(by_alias=True, mode="json")


@router.get("/api/uplinks/reliability", response_model=UplinkReliability)
async def get_uplink_reliability(db: AsyncSession = Depends(get_db)):
    """SNR/RSSI spread over the last hour."""
    return await network_queries.uplink_reliability(db)


@router.get("/api/network-health")
async def get_network_health(db: AsyncSession = Depends(get_db)):
    """Composite network health score."""
    health = await network_queries.network_health(db)
    return health.model_dump(by_alias=True, mode="json")
