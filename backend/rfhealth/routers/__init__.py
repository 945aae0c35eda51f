"""API routers."""
from .webhook import router as webhook_router
from .health import router as health_router
from .gateways import router as gateways_router
from .devices import router as devices_router

__all__ = ["webhook_router", "health_router", "gateways_router", "devices_router"]
