# tests/conftest.py
# PURPOSE: create a TestClient and override DB dependency to use a temp SQLite file.

# Ensure project root is on sys.path so `import tasklane` works when running pytest.
import sys, os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import tempfile
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from tasklane import db_models  # noqa: F401  (register tables)
from tasklane.db import Base, get_db  # DB metadata + dependency to override
from tasklane.main import app  # FastAPI app
from tasklane.rate_limit import limiter


@pytest.fixture()
def engine():
    # Temporary SQLite file so data is isolated per test
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    eng = create_engine(f"sqlite:///{tmp.name}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()
    os.unlink(tmp.name)


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    """A plain session for service/store level tests."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    limiter.reset()

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


def register(client, email: str, password: str = "secret-123", name: str | None = "Test User") -> dict:
    """Register a user through the API; returns {"user", "token"}."""
    r = client.post("/api/v1/auth/register", json={"name": name, "email": email, "password": password})
    assert r.status_code == 201, r.text
    return r.json()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def alice(client) -> dict:
    return bearer(register(client, "alice@example.com")["token"])


@pytest.fixture()
def bob(client) -> dict:
    return bearer(register(client, "bob@example.com")["token"])


@pytest.fixture()
def make_user(db):
    """Insert a user row directly; returns its id."""
    from tasklane import store_db

    def _make(email: str) -> str:
        return store_db.create_user(db, name=None, email=email, password_hash="x").id

    return _make
