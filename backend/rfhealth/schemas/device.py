"""Device schemas for API."""
from datetime import datetime
from typing import List, Optional

from .base import CamelModel


class DeviceResponse(CamelModel):
    """Device identity, activity window and last reported status."""
    dev_eui: str
    first_seen: datetime
    last_seen: Optional[datetime] = None
    margin: Optional[int] = None
    battery_level: Optional[float] = None


class DeviceHealth(CamelModel):
    """Device health over the last hour."""
    dev_eui: str
    avg_score: float
    rf_status: str  # HEALTHY, DEGRADED, CRITICAL
    connectivity_status: str  # ONLINE, OFFLINE, UNKNOWN
    last_seen: Optional[datetime] = None


class SilentDevice(CamelModel):
    """A device that stopped reporting."""
    dev_eui: str
    last_seen: Optional[datetime] = None
    silent_minutes: Optional[int] = None


class DeviceReception(CamelModel):
    """A reception as seen from the device side."""
    timestamp: datetime
    gateway_id: str
    rssi: float
    snr: float
    rf_score: int
    is_best: bool


class DeviceDetail(CamelModel):
    """Most recent receptions of a device with derived health."""
    dev_eui: str
    avg_score: float
    rf_status: str
    connectivity_status: str
    last_seen: datetime
    uplinks: List[DeviceReception]


class DeviceMetrics(CamelModel):
    """Aggregates over an optional time range."""
    dev_eui: str
    total_uplinks: int
    gateway_count: int
    avg_rf_score: Optional[float] = None
    min_rf_score: Optional[int] = None
    max_rf_score: Optional[int] = None
    avg_rssi: Optional[float] = None
    avg_snr: Optional[float] = None
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    rf_status: str = "UNKNOWN"
    connectivity_status: str = "UNKNOWN"
