# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# Environment is set before the app is imported: settings and the engine are
# built at import time.
# =============================================================================

import os
import tempfile
from io import BytesIO

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("STATIC_ROOT", tempfile.mkdtemp(prefix="photofeed-static-"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from main import app
from photofeed.core.storage import PhotoStorage, get_storage
from photofeed.db.base import Base
from photofeed.db.session import SessionLocal, engine


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def storage(tmp_path):
    photo_storage = PhotoStorage(str(tmp_path), "/static")
    app.dependency_overrides[get_storage] = lambda: photo_storage
    yield photo_storage
    app.dependency_overrides.pop(get_storage, None)


@pytest.fixture
def client(storage):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db():
    """A fresh session for asserting on stored rows."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_image_bytes(size=(1600, 1200), fmt="PNG") -> bytes:
    image = Image.new("RGB", size, color=(0, 200, 100))
    buffer = BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


class _NoRow:
    def filter(self, *criteria):
        return self

    def first(self):
        return None


def hide_existing(monkeypatch, session, model):
    """Make ``session.query(model)...first()`` miss, as if the row were committed by a concurrent request."""
    real_query = session.query

    def query(*entities):
        if len(entities) == 1 and entities[0] is model:
            return _NoRow()
        return real_query(*entities)

    monkeypatch.setattr(session, "query", query)


def register(client, username, password="secret123", full_name=None):
    response = client.post("/api/auth/register", json={
        "username": username,
        "email": f"{username}@example.com",
        "full_name": full_name or username.title(),
        "password": password,
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]


def login(client, username, password="secret123") -> dict:
    response = client.post("/api/auth/login", data={"username": username, "password": password})
    assert response.status_code == 200, response.text
    token = response.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice(client):
    register(client, "alice", full_name="Alice Liddell")
    return login(client, "alice")


@pytest.fixture
def bob(client):
    register(client, "bob", full_name="Bob Builder")
    return login(client, "bob")


@pytest.fixture
def make_post(client, alice):
    def _make_post(content="hello", headers=None, status=None, photos=0):
        data = {"content": content} if content is not None else {}
        if status:
            data["status"] = status
        files = [("photos", (f"p{i}.png", make_image_bytes(), "image/png")) for i in range(photos)]
        response = client.post("/api/posts", data=data, files=files or None, headers=headers or alice)
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _make_post
