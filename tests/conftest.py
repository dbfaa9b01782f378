"""
Pytest configuration and shared fixtures for tests
"""

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlmodel import Session, SQLModel, create_engine
from sqlalchemy.pool import StaticPool

from src.db_models import PoolDocument  # noqa: F401 - registers table metadata
from src.engine import ArbitrationEngine
from src.store import PoolStore


class FakeClock:
    """Controllable UTC clock"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingNotifier:
    """Notifier that remembers every message it was asked to deliver"""

    def __init__(self):
        self.sent = []

    async def notify(self, user_id, message, preferred_channel=None):
        self.sent.append((user_id, message))

    def messages_for(self, user_id):
        return [m for u, m in self.sent if u == user_id]


@pytest.fixture(name="db_engine")
def db_engine_fixture():
    """Create in-memory SQLite database engine for testing"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # Keep single connection for in-memory DB
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture(name="db_session")
def db_session_fixture(db_engine):
    """Create database session for testing"""
    with Session(db_engine) as session:
        yield session
        session.rollback()  # Rollback any uncommitted changes after test


@pytest.fixture(name="session_factory")
def session_factory_fixture(db_engine):
    """get_session() replacement bound to the in-memory engine"""

    @contextmanager
    def factory():
        session = Session(db_engine)
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return factory


@pytest.fixture(name="pool_store")
def pool_store_fixture(session_factory):
    return PoolStore("test-pool", session_factory=session_factory)


@pytest.fixture(name="clock")
def clock_fixture():
    return FakeClock(datetime(2026, 10, 16, 9, 0, tzinfo=timezone.utc))


@pytest.fixture(name="notifier")
def notifier_fixture():
    return RecordingNotifier()


@pytest_asyncio.fixture(name="engine")
async def engine_fixture(pool_store, notifier, clock):
    """Started engine with the default catalog"""
    engine = ArbitrationEngine(pool_store, notifier=notifier, clock=clock)
    await engine.start()
    yield engine
    await engine.drain()
