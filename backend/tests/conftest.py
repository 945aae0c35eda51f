
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select, func

from rfhealth.database import create_engine_for_url, create_session_factory, init_db
from rfhealth.main import create_app
from rfhealth.services import EventStore, RateLimiter


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'rfhealth-test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def store(session_factory):
    return EventStore(session_factory)


@pytest_asyncio.fixture
async def app(engine):
    app = create_app(engine=engine, rate_limiter=RateLimiter(1000, 60))
    yield app
    await app.state.task_queue.drain(timeout=5)


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client


@pytest.fixture
def count_rows(session_factory):
    async def count(model, *where):
        async with session_factory() as session:
            result = await session.execute(select(func.count()).select_from(model).where(*where))
            return result.scalar()
    return count


