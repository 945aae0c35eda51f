"""Device model - end devices identified by their DevEUI."""
from sqlalchemy import Column, String, DateTime, Float, Integer
from sqlalchemy.orm import relationship

from ..database import Base


class Device(Base):
    """An end device, created lazily on first reference."""

    __tablename__ = "devices"

    id = Column(String(255), primary_key=True)  # DevEUI
    first_seen = Column(DateTime, nullable=False)
    last_seen = Column(DateTime, nullable=True, index=True)
    margin = Column(Integer, nullable=True)  # Link margin from status events
    battery_level = Column(Float, nullable=True)  # 0-100, or 0-255 on some stacks

    # Relationships
    receptions = relationship("Reception", back_populates="device")
