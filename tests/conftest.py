import os
import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STORAGE_BACKEND", "database")
os.environ.setdefault("PLATFORM_HEALTH_URLS", "{}")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from wolf_marketer.db import models  # noqa: E402,F401
from wolf_marketer.db.base import Base  # noqa: E402
from wolf_marketer.main import app  # noqa: E402
from wolf_marketer.services.platform_api import get_connector_factory  # noqa: E402
from wolf_marketer.storage.database import DatabaseStorage  # noqa: E402
from wolf_marketer.storage.deps import get_storage  # noqa: E402
from wolf_marketer.storage.memory import MemStorage  # noqa: E402


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def memory_storage() -> MemStorage:
    return MemStorage()


@pytest.fixture(params=["memory", "database"])
def storage(request):
    if request.param == "memory":
        return MemStorage()
    return DatabaseStorage(request.getfixturevalue("db_session"))


class FakeConnector:
    def __init__(self, owner: "FakeConnectorFactory", platform_name: str) -> None:
        self.owner = owner
        self.platform_name = platform_name

    def test_connection(self) -> bool:
        self.owner.calls.append(self.platform_name)
        return self.owner.ok


class FakeConnectorFactory:
    def __init__(self) -> None:
        self.ok = True
        self.calls: list[str] = []

    def __call__(self, platform) -> FakeConnector:
        return FakeConnector(self, platform.name)


@pytest.fixture()
def fake_connector() -> FakeConnectorFactory:
    return FakeConnectorFactory()


@pytest.fixture()
def override_dependencies(memory_storage, fake_connector):
    app.dependency_overrides[get_storage] = lambda: memory_storage
    app.dependency_overrides[get_connector_factory] = lambda: fake_connector
    try:
        yield
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def api_client(override_dependencies):
    with TestClient(app) as client:
        yield client
