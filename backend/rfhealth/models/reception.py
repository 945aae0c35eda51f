"""Reception model - one gateway's observation of one uplink frame."""
from sqlalchemy import Column, BigInteger, Integer, String, Float, DateTime, ForeignKey, Boolean, Index
from sqlalchemy.orm import relationship

from ..database import Base


class Reception(Base):
    """Append-only reception record with its computed RF score."""

    __tablename__ = "receptions"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    device_id = Column(String(255), ForeignKey("devices.id", ondelete="CASCADE"), nullable=False)
    gateway_id = Column(String(255), ForeignKey("gateways.id", ondelete="CASCADE"), nullable=False)
    timestamp = Column(DateTime, nullable=False)
    rssi = Column(Float, nullable=False)
    snr = Column(Float, nullable=False)
    rf_score = Column(Integer, nullable=False)
    is_best = Column(Boolean, nullable=False, default=False)

    # Relationships
    device = relationship("Device", back_populates="receptions")
    gateway = relationship("Gateway", back_populates="receptions")


# Windowed aggregation reads newest-first per device and per gateway
Index("idx_receptions_device_timestamp", Reception.device_id, Reception.timestamp.desc())
Index("idx_receptions_gateway_timestamp", Reception.gateway_id, Reception.timestamp.desc())
Index("idx_receptions_timestamp", Reception.timestamp.desc())
