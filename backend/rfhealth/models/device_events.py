"""Device event models - join, downlink, log and location history."""
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Boolean, Index

from ..database import Base


class JoinEvent(Base):
    """A successful OTAA join."""

    __tablename__ = "join_events"
    __table_args__ = (
        Index("idx_join_events_device_timestamp", "device_id", "timestamp"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(String(255), ForeignKey("devices.id", ondelete="CASCADE"), nullable=False)
    timestamp = Column(DateTime, nullable=False)


class DownlinkEvent(Base):
    """Downlink transmission (txack) or device acknowledgement (ack)."""

    __tablename__ = "downlink_events"
    __table_args__ = (
        Index("idx_downlink_events_device_timestamp", "device_id", "timestamp"),
        Index("idx_downlink_events_device_type", "device_id", "event_type"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(String(255), ForeignKey("devices.id", ondelete="CASCADE"), nullable=False)
    event_type = Column(String(10), nullable=False)  # ack, txack
    acknowledged = Column(Boolean, nullable=True)  # ack only
    fcnt_down = Column(Integer, nullable=True)  # txack only
    timestamp = Column(DateTime, nullable=False)


class DeviceLog(Base):
    """ERROR/WARN log entry reported by the network server for a device."""

    __tablename__ = "device_logs"
    __table_args__ = (
        Index("idx_device_logs_device_timestamp", "device_id", "timestamp"),
        Index("idx_device_logs_device_level", "device_id", "level"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(String(255), ForeignKey("devices.id", ondelete="CASCADE"), nullable=False)
    level = Column(String(10), nullable=False)
    code = Column(String(255), nullable=True)
    description = Column(String, nullable=True)
    timestamp = Column(DateTime, nullable=False)


class DeviceLocation(Base):
    """Resolved device position."""

    __tablename__ = "device_locations"
    __table_args__ = (
        Index("idx_device_locations_device_timestamp", "device_id", "timestamp"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(String(255), ForeignKey("devices.id", ondelete="CASCADE"), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    altitude = Column(Float, nullable=True)  # meters, NULL if absent or out of range
    timestamp = Column(DateTime, nullable=False)
