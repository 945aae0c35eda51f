"""Database models."""
from .gateway import Gateway
from .device import Device
from .reception import Reception
from .device_events import JoinEvent, DownlinkEvent, DeviceLog, DeviceLocation

__all__ = ["Gateway", "Device", "Reception", "JoinEvent", "DownlinkEvent", "DeviceLog", "DeviceLocation"]
