"""Device read endpoints."""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.device import DeviceResponse, DeviceHealth, DeviceDetail, DeviceMetrics, SilentDevice
from ..services import device_queries
from ..utils.timestamps import to_naive_utc

router = APIRouter(prefix="/api/devices", tags=["devices"])


@router.get("", response_model=List[DeviceResponse])
async def list_devices(db: AsyncSession = Depends(get_db)):
    return await device_queries.list_devices(db)


@router.get("/health", response_model=List[DeviceHealth])
async def get_device_health(db: AsyncSession = Depends(get_db)):
    """Health and connectivity of every device heard in the last hour."""
    return await device_queries.device_health(db)


@router.get("/silent", response_model=List[SilentDevice])
async def get_silent_devices(db: AsyncSession = Depends(get_db)):
    """Devices silent for longer than the offline threshold."""
    return await device_queries.silent_devices(db)


@router.get("/{dev_eui}/metrics", response_model=DeviceMetrics)
async def get_device_metrics(
    dev_eui: str,
    start: Optional[datetime] = Query(None, alias="from"),
    end: Optional[datetime] = Query(None, alias="to"),
    db: AsyncSession = Depends(get_db),
):
    """Aggregates for one device over an optional ``from``/``to`` range."""
    metrics = await device_queries.device_metrics(
        db,
        dev_eui,
        to_naive_utc(start) if start else None,
        to_naive_utc(end) if end else None,
    )
    if metrics is None:
        raise HTTPException(status_code=404, detail="Device not found")
    return metrics


@router.get("/{dev_eui}", response_model=DeviceDetail)
async def get_device(dev_eui: str, db: AsyncSession = Depends(get_db)):
    detail = await device_queries.device_detail(db, dev_eui)
    if detail is None:
        raise HTTPException(status_code=404, detail="Device not found or no uplinks received")
    return detail
