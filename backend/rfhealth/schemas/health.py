"""Network-wide health schemas."""
from datetime import datetime
from typing import Optional

from .base import CamelModel


class LastUplink(CamelModel):
    """Most recent reception across all gateways."""
    timestamp: datetime
    dev_eui: str
    gateway_id: str
    rssi: float
    snr: float
    rf_score: int
    is_best: bool


class UplinkReliability(CamelModel):
    """Signal spread over the last hour."""
    stddev_snr: Optional[float] = None
    stddev_rssi: Optional[float] = None
    sample_count: int
    classification: str  # Stable, Unstable, Unknown


class HealthComponent(CamelModel):
    """One weighted input of the network health score."""
    score: float
    weight: float
    contribution: float
    data_points: Optional[int] = None


class NetworkHealthComponents(CamelModel):
    rf_quality: HealthComponent
    battery_health: HealthComponent
    downlink_success: HealthComponent
    error_rate: HealthComponent


class NetworkHealth(CamelModel):
    """Composite 0-100 network health score."""
    score: float
    components: NetworkHealthComponents
    timestamp: datetime
