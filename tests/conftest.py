# tests/conftest.py

import os

# must be set before the app's config module is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "")

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.orm import sessionmaker

from event_analytics.main import app as fastapi_app
from event_analytics.core.cache import AggregateCache, get_cache
from event_analytics.core.database import create_db_engine, get_db

from event_analytics.models.account import Base
import event_analytics.models.auth as _auth_models  # noqa: F401
import event_analytics.models.event as _event_models  # noqa: F401

from event_analytics.crud.crud_auth import AccountIdentity, create_account
from event_analytics.schemas.app import ApplicationCreate
from event_analytics.security.tokens import create_access_token
from event_analytics.services.access_keys import AccessKeyManager
from event_analytics.services.applications import ApplicationService


class FakeRedis:
    """In-memory stand-in for the subset of redis.Redis the cache uses."""

    def __init__(self):
        self.store = {}
        self.ttl = {}
        self.calls = []

    def get(self, key):
        self.calls.append(("get", key))
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self.calls.append(("set", key))
        self.store[key] = value
        if ex is not None:
            self.ttl[key] = ex
        return True

    def expire(self, key, seconds):
        self.calls.append(("expire", key))
        self.ttl[key] = seconds
        return True

    def incr(self, key):
        self.calls.append(("incr", key))
        value = int(self.store.get(key, 0)) + 1
        self.store[key] = str(value)
        return value

    def ping(self):
        return True


class BrokenRedis:
    """Every call fails the way an unreachable redis does."""

    def __init__(self):
        self.calls = []

    def _fail(self, name):
        def _call(*args, **kwargs):
            self.calls.append(name)
            raise RedisConnectionError("Connection refused")
        return _call

    def __getattr__(self, name):
        return self._fail(name)


@pytest.fixture(scope="session")
def engine():
    eng = create_db_engine(os.environ["DATABASE_URL"])
    Base.metadata.create_all(bind=eng)
    return eng


@pytest.fixture()
def db_session(engine):
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    db = SessionLocal()

    # Clean between tests because app code commits
    for table in reversed(Base.metadata.sorted_tables):
        db.execute(table.delete())
    db.commit()

    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def fake_redis():
    return FakeRedis()


@pytest.fixture()
def broken_redis():
    return BrokenRedis()


@pytest.fixture()
def cache(fake_redis):
    return AggregateCache(fake_redis)


@pytest.fixture()
def client(db_session, cache):
    def _override_get_db():
        yield db_session

    # set overrides BEFORE creating the client
    fastapi_app.dependency_overrides[get_db] = _override_get_db
    fastapi_app.dependency_overrides[get_cache] = lambda: cache

    try:
        yield TestClient(fastapi_app)
    finally:
        fastapi_app.dependency_overrides.clear()


def _identity(db, name, email):
    row = create_account(db, name=name, email=email, password="correct-horse-1")
    return AccountIdentity(account_id=row.id, email=row.email)


@pytest.fixture()
def owner(db_session):
    return _identity(db_session, "Owner", "owner@example.com")


@pytest.fixture()
def other_owner(db_session):
    return _identity(db_session, "Other", "other@example.com")


def bearer(identity):
    return {"Authorization": f"Bearer {create_access_token(identity.account_id, identity.email)}"}


@pytest.fixture()
def owner_headers(owner):
    return bearer(owner)


@pytest.fixture()
def other_headers(other_owner):
    return bearer(other_owner)


@pytest.fixture()
def registered_app(db_session, owner):
    service = ApplicationService(db_session, AccessKeyManager(db_session))
    app, key, plain = service.register(owner, ApplicationCreate(name="Test Site", domain="test.com", type="website"))
    return {"app_id": app.id, "api_key": plain, "key_id": key.id}
