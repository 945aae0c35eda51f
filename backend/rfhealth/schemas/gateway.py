"""Gateway schemas for API."""
from datetime import datetime
from typing import List, Optional

from .base import CamelModel


class GatewayResponse(CamelModel):
    """Gateway identity and activity window."""
    gateway_id: str
    first_seen: datetime
    last_seen: Optional[datetime] = None


class GatewayHealth(CamelModel):
    """Gateway health over the last hour."""
    gateway_id: str
    avg_score: float
    status: str  # HEALTHY, DEGRADED, CRITICAL
    last_seen: Optional[datetime] = None
    stability_index: str  # STABLE, UNSTABLE, VERY_UNSTABLE, UNKNOWN


class GatewayReception(CamelModel):
    """A reception as seen from the gateway side."""
    timestamp: datetime
    dev_eui: str
    rssi: float
    snr: float
    rf_score: int
    is_best: bool


class GatewayDetail(CamelModel):
    """Most recent receptions of a gateway with derived health."""
    gateway_id: str
    health_score: float
    status: str
    stability_index: str
    uplinks: List[GatewayReception]


class GatewayMetrics(CamelModel):
    """Aggregates over an optional time range."""
    gateway_id: str
    total_uplinks: int
    avg_rf_score: Optional[float] = None
    min_rf_score: Optional[int] = None
    max_rf_score: Optional[int] = None
    avg_rssi: Optional[float] = None
    avg_snr: Optional[float] = None
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    stability_index: str = "UNKNOWN"
