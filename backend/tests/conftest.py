import os

# Keep the module-level engine off the developer's database file.
os.environ.setdefault("JADWAL_DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jadwal.api.deps import get_registry, get_store
from jadwal.core.config import DEFAULT_SCHOOL_DAYS
from jadwal.db.base import Base
from jadwal.main import app
from jadwal.services.store import SqlAlchemyKeyValueStore
from jadwal.services.workspace import ScheduleWorkspace, WorkspaceRegistry
import jadwal.models  # noqa: F401


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def store(session_factory):
    return SqlAlchemyKeyValueStore(session_factory)


@pytest.fixture()
def days():
    return list(DEFAULT_SCHOOL_DAYS)


@pytest.fixture()
def workspace(days):
    return ScheduleWorkspace("principal-1", days)


@pytest.fixture()
def client(store, days):
    registry = WorkspaceRegistry(days)
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_registry] = lambda: registry

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
