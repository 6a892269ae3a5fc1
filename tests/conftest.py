"""
Shared fixtures: an in-memory SQLite database per test, a FastAPI TestClient
bound to it, and a cheap argon2 profile so hashing does not dominate runtime.
"""
import pytest
from argon2 import PasswordHasher
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from orangetv import models  # noqa: F401
from orangetv.core import security
from orangetv.core.config import settings
from orangetv.db.base import Base
from orangetv.db.session import create_db_engine, get_db
from orangetv.main import app
from orangetv.security.rate_limit import get_login_limiter

OWNER = "owner"
OWNER_PASSWORD = "owner-secret"


@pytest.fixture(autouse=True)
def configure(monkeypatch):
    monkeypatch.setattr(settings, "STORAGE_TYPE", "database")
    monkeypatch.setattr(settings, "USERNAME", OWNER)
    monkeypatch.setattr(settings, "PASSWORD", OWNER_PASSWORD)
    monkeypatch.setattr(
        security, "_ph", PasswordHasher(time_cost=1, memory_cost=8, parallelism=1, hash_len=16, salt_len=16)
    )
    get_login_limiter().reset()
    yield
    get_login_limiter().reset()


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_client(client):
    """Extra clients with their own cookie jars, sharing the same database."""
    def _make():
        return TestClient(app)
    return _make


def login(client, username, password, machine_code=None):
    body = {"username": username, "password": password}
    if machine_code is not None:
        body["machineCode"] = machine_code
    return client.post("/api/login", json=body)


def register(client, username, password="password123"):
    return client.post("/api/register", json={"username": username, "password": password})
