from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from todoai.db.base import Base
from todoai.db.deps import get_db
from todoai.main import app
from todoai.observability import client as opik_client
from todoai.services.completion import get_completion_service


@pytest.fixture(autouse=True)
def _opik_disabled():
    opik_client.reset_opik()
    yield
    opik_client.reset_opik()


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # pragma: no cover - sqlite setup
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    engine.dispose()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    # Keyword rules unless a test installs its own completion service.
    app.dependency_overrides[get_completion_service] = lambda: None
    with TestClient(app) as test_client:
        yield test_client, session_factory
    app.dependency_overrides.clear()


def signup_and_login(test_client: TestClient, email: str = "jisoo@example.com", password: str = "secret123") -> dict:
    """Register an account and return Authorization headers for it."""
    resp = test_client.post("/auth/signup", json={"name": "Jisoo", "email": email, "password": password})
    assert resp.status_code == 201, resp.text
    login = test_client.post("/auth/login", json={"email": email, "password": password})
    assert login.status_code == 200, login.text
    return {"Authorization": f"Bearer {login.json()['access_token']}"}


@pytest.fixture()
def signup(client):
    test_client, _ = client

    def _signup(email: str = "jisoo@example.com", password: str = "secret123") -> dict:
        return signup_and_login(test_client, email, password)

    return _signup
