"""
Shared fixtures: an in-memory database, a fake asset store and a clock the
tests can step explicitly.
"""
import os
import sys
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app
from config import Settings
from errors import AssetUnavailable
from models import Base
from store import PostStore

ADMIN_PASSWORD = "correct horse battery staple"


class FakeAssetStore:
    """In-memory AssetStore; flip ``broken`` to simulate a backend outage."""

    def __init__(self):
        self.blobs = {}
        self.broken = False

    def store(self, data, content_type):
        if self.broken:
            raise AssetUnavailable("backend down")
        handle = f"asset-{len(self.blobs) + 1}"
        self.blobs[handle] = (data, content_type)
        return handle

    def resolve(self, handle):
        if self.broken:
            raise AssetUnavailable("backend down")
        return f"https://cdn.test/{handle}" if handle in self.blobs else None


class StepClock:
    """Returns a later instant on every call."""

    def __init__(self, start=datetime(2024, 1, 1, 12, 0, 0), step=timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self):
        self.now += self.step
        return self.now


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def assets():
    return FakeAssetStore()


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def store(engine, assets, clock):
    return PostStore(sessionmaker(engine, expire_on_commit=False), assets, clock=clock)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        TOKEN_SECRET="test-token-secret",
        DB_URL="sqlite://",
        UPLOAD_DIR=tmp_path / "uploads",
        MAX_UPLOAD_MB=1,
    )


@pytest.fixture
def client(settings, assets, store):
    with TestClient(create_app(settings, assets=assets, store=store)) as c:
        yield c


@pytest.fixture
def admin_headers(client):
    resp = client.post("/auth/login", json={"password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
def make_post(store):
    """Create a post with sensible defaults; returns its identity."""
    def _make(slug="hello", publish=False, **kw):
        fields = dict(title=slug.title(), slug=slug, content="body", excerpt="excerpt",
                      publish=publish)
        fields.update(kw)
        return store.create(**fields)
    return _make
