"""Derived radio-quality classifications.

Pure functions over samples already read from the database:

- stability index from the spread of recent SNR values
- connectivity from the time since the last reception
- health status from an average RF score (see ``rf_score.health_status``)
"""
import math
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ..config import offline_threshold
from ..utils.timestamps import to_naive_utc, utcnow
from .rf_score import health_status

__all__ = [
    "population_stddev",
    "stability_index",
    "connectivity_status",
    "health_status",
    "reliability_class",
    "STABILITY_SAMPLE_SIZE",
]

# Most recent receptions considered for stability and detail views
STABILITY_SAMPLE_SIZE = 20

STABLE_MAX_STDDEV = 2
UNSTABLE_MAX_STDDEV = 5

# Reliability of the whole network over the last hour
RELIABLE_SNR_STDDEV = 2
RELIABLE_RSSI_STDDEV = 5


def population_stddev(values: Sequence[float]) -> float:
    """Population standard deviation; 0 for an empty sample."""
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    variance = sum((value - mean) ** 2 for value in values) / len(values)
    return math.sqrt(variance)


def stability_index(snr_values: Sequence[float]) -> str:
    """STABLE (stddev <= 2), UNSTABLE (<= 5), VERY_UNSTABLE, or UNKNOWN when empty."""
    if not snr_values:
        return "UNKNOWN"
    stddev = population_stddev(snr_values)
    if stddev <= STABLE_MAX_STDDEV:
        return "STABLE"
    if stddev <= UNSTABLE_MAX_STDDEV:
        return "UNSTABLE"
    return "VERY_UNSTABLE"


def connectivity_status(
    last_seen: Optional[datetime],
    now: Optional[datetime] = None,
    threshold: Optional[timedelta] = None,
) -> str:
    """ONLINE until the silence exceeds the offline threshold, then OFFLINE."""
    if last_seen is None:
        return "UNKNOWN"
    now = to_naive_utc(now) if now else utcnow()
    threshold = threshold if threshold is not None else offline_threshold()
    if now - to_naive_utc(last_seen) <= threshold:
        return "ONLINE"
    return "OFFLINE"


def reliability_class(stddev_snr: Optional[float], stddev_rssi: Optional[float]) -> str:
    """Stable when both SNR and RSSI spreads are small."""
    if stddev_snr is None or stddev_rssi is None:
        return "Unknown"
    if stddev_snr <= RELIABLE_SNR_STDDEV and stddev_rssi <= RELIABLE_RSSI_STDDEV:
        return "Stable"
    return "Unstable"
