"""Gateway model - receivers seen in uplink traffic."""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship

from ..database import Base


class Gateway(Base):
    """A gateway, created on first reception and refreshed on every later one."""

    __tablename__ = "gateways"

    id = Column(String(255), primary_key=True)
    first_seen = Column(DateTime, nullable=False)
    last_seen = Column(DateTime, nullable=True, index=True)

    # Relationships
    receptions = relationship("Reception", back_populates="gateway")
