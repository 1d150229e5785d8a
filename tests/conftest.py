import os
import tempfile
from pathlib import Path

_tmpdir = Path(tempfile.mkdtemp(prefix="haanein_test_"))
_db_path = _tmpdir / "test.db"

os.environ.setdefault("DATABASE_URL", f"sqlite:///{_db_path.as_posix()}")
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("LOG_DIR", (_tmpdir / "logs").as_posix())
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from haanein.db.base import Base
from haanein.db.session import engine, SessionLocal
from haanein.main import create_app


@pytest.fixture()
def clean_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db(clean_db):
    session = SessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def client(clean_db):
    app = create_app()
    with TestClient(app) as c:
        yield c


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def register(client):
    """Create an account and return (token, user json, headers)."""

    def _register(email: str, *, name: str = "Test User", password: str = "secret123", role: str | None = None):
        body = {"name": name, "email": email, "password": password}
        if role:
            body["role"] = role
        r = client.post("/api/users", json=body)
        assert r.status_code == 201, r.text
        token = r.json()["token"]
        return token, r.json()["data"]["user"], auth_header(token)

    return _register


def make_place(name: str = "Blue Bottle", *, lng: float = 34.7818, lat: float = 32.0853, **extra) -> dict:
    body = {
        "name": name,
        "description": "Coffee and pastries",
        "address": "1 Rothschild Blvd",
        "category": "cafe",
        "location": {"type": "Point", "coordinates": [lng, lat]},
    }
    body.update(extra)
    return body


@pytest.fixture()
def create_place(client):
    def _create(headers: dict[str, str], **kwargs) -> dict:
        r = client.post("/api/places", json=make_place(**kwargs), headers=headers)
        assert r.status_code == 201, r.text
        return r.json()["data"]["place"]

    return _create


@pytest.fixture()
def place_body():
    return make_place
