"""Gateway read endpoints."""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.gateway import GatewayResponse, GatewayHealth, GatewayDetail, GatewayMetrics
from ..services import gateway_queries
from ..utils.timestamps import to_naive_utc

router = APIRouter(prefix="/api/gateways", tags=["gateways"])


@router.get("", response_model=List[GatewayResponse])
async def list_gateways(db: AsyncSession = Depends(get_db)):
    return await gateway_queries.list_gateways(db)


@router.get("/health", response_model=List[GatewayHealth])
async def get_gateway_health(db: AsyncSession = Depends(get_db)):
    """Health of every gateway heard in the last hour; empty list if none."""
    return await gateway_queries.gateway_health(db)


@router.get("/{gateway_id}/metrics", response_model=GatewayMetrics)
async def get_gateway_metrics(
    gateway_id: str,
    start: Optional[datetime] = Query(None, alias="from"),
    end: Optional[datetime] = Query(None, alias="to"),
    db: AsyncSession = Depends(get_db),
):
    """Aggregates for one gateway over an optional ``from``/``to`` range."""
    metrics = await gateway_queries.gateway_metrics(
        db,
        gateway_id,
        to_naive_utc(start) if start else None,
        to_naive_utc(end) if end else None,
    )
    if metrics is None:
        raise HTTPException(status_code=404, detail="Gateway not found")
    return metrics


@router.get("/{gateway_id}", response_model=GatewayDetail)
async def get_gateway(gateway_id: str, db: AsyncSession = Depends(get_db)):
    detail = await gateway_queries.gateway_detail(db, gateway_id)
    if detail is None:
        raise HTTPException(status_code=404, detail="Gateway not found")
    return detail
