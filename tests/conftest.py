"""
BlogFleet - Fixtures compartidas de los tests.
"""
from datetime import datetime

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from core.generation_pipeline import GenerationPipeline
from core.quota_gate import CadenceConfig, local_now
from core.run_coordinator import RunCoordinator
from core.store import SQLAlchemyStore
from models.base import init_db
from tests.fakes import InMemoryStore, FakeGenerator, FakeImprover, FakeImages


# Miércoles 14/10/2026 a las 10:00, hora de París
FIXED_NOW = local_now(datetime(2026, 10, 14, 10, 0))


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def clock(now):
    return lambda: now


@pytest.fixture
def store(clock):
    return InMemoryStore(clock=clock)


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def improver():
    return FakeImprover()


@pytest.fixture
def images():
    return FakeImages()


@pytest.fixture
def pipeline(store, generator, improver, images):
    return GenerationPipeline(store, generator, improver, images)


@pytest.fixture
def coordinator(store, pipeline, clock):
    return RunCoordinator(store, pipeline, clock=clock)


@pytest.fixture
def cadence():
    """Cadencia abierta: todos los días y horas, cuotas holgadas."""
    return CadenceConfig(enabled=True, max_per_day=10, max_per_week=50)


@pytest_asyncio.fixture
async def sql_store(tmp_path):
    """SQLAlchemyStore sobre una BD SQLite temporal."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'blogfleet-test.db'}")
    await init_db(engine)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield SQLAlchemyStore(session_factory)
    await engine.dispose()
