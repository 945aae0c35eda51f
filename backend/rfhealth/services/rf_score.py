"""RF quality scoring.

The score is a pure function of the raw SNR and RSSI of one reception, so a
stored ``rf_score`` can always be recomputed from the stored raw values.

Thresholds (bounded to 40/70/100 so averages line up with the health bands):

- 100: SNR above 7 dB and RSSI above -90 dBm
- 70:  SNR between 3 and 7 dB inclusive
- 40:  everything else
"""
import math
from numbers import Real

SCORE_EXCELLENT = 100
SCORE_FAIR = 70
SCORE_POOR = 40

# Health bands over an average score
HEALTHY_THRESHOLD = 80
DEGRADED_THRESHOLD = 50


class InvalidInputError(ValueError):
    """Raised when SNR or RSSI is not a finite number."""


def _require_finite(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
        raise InvalidInputError(f"{name} must be a finite number, got {value!r}")
    return float(value)


def is_finite_number(value) -> bool:
    """True for int/float values that are finite (bools excluded)."""
    return not isinstance(value, bool) and isinstance(value, Real) and math.isfinite(value)


def calculate_rf_score(snr, rssi) -> int:
    """Score one reception from its SNR (dB) and RSSI (dBm)."""
    snr = _require_finite("SNR", snr)
    rssi = _require_finite("RSSI", rssi)

    if snr > 7 and rssi > -90:
        return SCORE_EXCELLENT
    if 3 <= snr <= 7:
        return SCORE_FAIR
    return SCORE_POOR


def health_status(avg_score) -> str:
    """Classify an average RF score: HEALTHY (>=80), DEGRADED (>=50), else CRITICAL."""
    if avg_score >= HEALTHY_THRESHOLD:
        return "HEALTHY"
    if avg_score >= DEGRADED_THRESHOLD:
        return "DEGRADED"
    return "CRITICAL"
