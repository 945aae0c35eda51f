"""Pydantic schemas for API response models."""
from .gateway import (
    GatewayResponse,
    GatewayHealth,
    GatewayDetail,
    GatewayReception,
    GatewayMetrics,
)
from .device import (
    DeviceResponse,
    DeviceHealth,
    DeviceDetail,
    DeviceReception,
    DeviceMetrics,
    SilentDevice,
)
from .health import (
    LastUplink,
    UplinkReliability,
    HealthComponent,
    NetworkHealthComponents,
    NetworkHealth,
)

__all__ = [
    "GatewayResponse",
    "GatewayHealth",
    "GatewayDetail",
    "GatewayReception",
    "GatewayMetrics",
    "DeviceResponse",
    "DeviceHealth",
    "DeviceDetail",
    "DeviceReception",
    "DeviceMetrics",
    "SilentDevice",
    "LastUplink",
    "UplinkReliability",
    "HealthComponent",
    "NetworkHealthComponents",
    "NetworkHealth",
]
