"""Persistence gateway - transactional writes for ingested events.

Every write is one unit of work on its own pooled connection: upsert the
identities it references (refreshing ``last_seen``), then insert the event
row. Either all statements commit or the transaction is rolled back and the
caller receives a ``PersistenceError``. Connection failures that the driver
raises outside SQLAlchemy (refused connections, timeouts) are reported the
same way. There is no retry here; the upstream sender redelivers.
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models import Gateway, Device, Reception, JoinEvent, DownlinkEvent, DeviceLog, DeviceLocation

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """A unit of work failed and was rolled back."""

    def __init__(self, message: str, device_id: str, gateway_id: Optional[str] = None,
                 timestamp: Optional[datetime] = None):
        super().__init__(message)
        self.device_id = device_id
        self.gateway_id = gateway_id
        self.timestamp = timestamp


def _insert_for(session: AsyncSession):
    """Dialect-specific INSERT supporting ON CONFLICT."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise RuntimeError(f"Unsupported database dialect: {dialect}")


async def _upsert_identity(session: AsyncSession, model, identity: str, seen_at: datetime):
    """Insert the row on first sight, otherwise move ``last_seen`` to this event."""
    insert = _insert_for(session)
    stmt = insert(model).values(id=identity, first_seen=seen_at, last_seen=seen_at)
    stmt = stmt.on_conflict_do_update(
        index_elements=[model.id],
        set_={"last_seen": stmt.excluded.last_seen},
    )
    await session.execute(stmt)


class EventStore:
    """Writes ingested events; owns the transaction boundaries."""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def _run(self, work, *, device_id: str, gateway_id: Optional[str] = None,
                   timestamp: Optional[datetime] = None, what: str = "event"):
        """Run ``work(session)`` in one transaction, translating failures."""
        async with self._session_factory() as session:
            try:
                async with session.begin():
                    return await work(session)
            except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
                raise PersistenceError(
                    f"Failed to store {what}: {e}",
                    device_id=device_id,
                    gateway_id=gateway_id,
                    timestamp=timestamp,
                ) from e

    async def store_reception(
        self,
        device_id: str,
        gateway_id: str,
        timestamp: datetime,
        rssi: float,
        snr: float,
        rf_score: int,
        is_best: bool,
    ) -> int:
        """Upsert gateway and device, then insert the reception. Returns the new row id."""
        async def work(session: AsyncSession) -> int:
            await _upsert_identity(session, Gateway, gateway_id, timestamp)
            await _upsert_identity(session, Device, device_id, timestamp)
            reception = Reception(
                device_id=device_id,
                gateway_id=gateway_id,
                timestamp=timestamp,
                rssi=rssi,
                snr=snr,
                rf_score=rf_score,
                is_best=is_best,
            )
            session.add(reception)
            await session.flush()
            return reception.id

        reception_id = await self._run(
            work, device_id=device_id, gateway_id=gateway_id, timestamp=timestamp, what="reception",
        )
        logger.debug(f"Reception stored: device={device_id} gateway={gateway_id} at {timestamp.isoformat()}")
        return reception_id

    async def store_status(self, device_id: str, timestamp: datetime,
                           margin: Optional[int], battery_level: Optional[float]):
        """Refresh the device and record its latest margin / battery level."""
        async def work(session: AsyncSession):
            await _upsert_identity(session, Device, device_id, timestamp)
            device = await session.get(Device, device_id)
            if margin is not None:
                device.margin = margin
            if battery_level is not None:
                device.battery_level = battery_level

        await self._run(work, device_id=device_id, timestamp=timestamp, what="status")

    async def _store_device_row(self, device_id: str, timestamp: datetime, row, what: str):
        async def work(session: AsyncSession):
            await _upsert_identity(session, Device, device_id, timestamp)
            session.add(row)

        await self._run(work, device_id=device_id, timestamp=timestamp, what=what)

    async def store_join(self, device_id: str, timestamp: datetime):
        await self._store_device_row(
            device_id, timestamp, JoinEvent(device_id=device_id, timestamp=timestamp), "join",
        )

    async def store_downlink(self, device_id: str, timestamp: datetime, event_type: str,
                             acknowledged: Optional[bool] = None, fcnt_down: Optional[int] = None):
        row = DownlinkEvent(
            device_id=device_id,
            event_type=event_type,
            acknowledged=acknowledged,
            fcnt_down=fcnt_down,
            timestamp=timestamp,
        )
        await self._store_device_row(device_id, timestamp, row, event_type)

    async def store_log(self, device_id: str, timestamp: datetime, level: str,
                        code: Optional[str], description: Optional[str]):
        row = DeviceLog(
            device_id=device_id,
            level=level,
            code=code,
            description=description,
            timestamp=timestamp,
        )
        await self._store_device_row(device_id, timestamp, row, "log")

    async def store_location(self, device_id: str, timestamp: datetime, latitude: float,
                             longitude: float, altitude: Optional[float]):
        row = DeviceLocation(
            device_id=device_id,
            latitude=latitude,
            longitude=longitude,
            altitude=altitude,
            timestamp=timestamp,
        )
        await self._store_device_row(device_id, timestamp, row, "location")
