"""Shared fixtures: in-memory SQLite, fake Redis, in-memory provider, JWT identities."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("AUTH_SECRET", "test-secret-key-with-at-least-32-bytes!!")
os.environ.setdefault("MERCADO_PAGO_ACCESS_TOKEN", "")

import jwt
import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.database import get_db
from app.main import app
from app.models import Base
from app.models.generated import Users
from app.redis_client import get_redis
from app.services.premium import InMemoryStatusProvider, get_status_provider


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeRedis:
    """The handful of Redis commands the app uses, kept in a dict."""

    def __init__(self):
        self.store = {}
        self.lists = {}
        self.ttls = {}

    def ping(self):
        return True

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def rpush(self, key, *values):
        self.lists.setdefault(key, []).extend(values)
        return len(self.lists[key])


class BrokenRedis:
    """Every command fails like an unreachable server."""

    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise RedisConnectionError("connection refused")
        return fail


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def broken_redis():
    return BrokenRedis()


@pytest.fixture
def provider():
    return InMemoryStatusProvider()


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "upload_dir", str(tmp_path))
    return tmp_path


@pytest.fixture
def client(db, fake_redis, provider, upload_dir):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: fake_redis
    app.dependency_overrides[get_status_provider] = lambda: provider

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


def make_token(sub, role="USER", email=None, name=None):
    claims = {
        "sub": sub,
        "email": email or f"{sub}@example.com",
        "name": name or sub,
        "role": role,
    }
    return jwt.encode(claims, settings.auth_secret, algorithm=settings.auth_algorithm)


def auth_headers(sub, role="USER"):
    return {"Authorization": f"Bearer {make_token(sub, role)}"}


@pytest.fixture
def make_user(db):
    """Create a local user matching a token `sub`; returns (user, headers)."""
    def _make(sub="user-1", role="USER"):
        user = Users(external_id=sub, email=f"{sub}@example.com", name=sub, role=role)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user, auth_headers(sub, role)
    return _make


@pytest.fixture
def admin_headers(make_user):
    _, headers = make_user("admin-1", role="ADMIN")
    return headers
