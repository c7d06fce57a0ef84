from __future__ import annotations

import os
import pathlib
import sys

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("ENVIRONMENT", "test")

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401  # Ensure models are registered with metadata
from database import Base, get_db
from main import app


@pytest.fixture()
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def db_session(session_factory):
    session: Session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_client(session_factory):
    """Build clients that share one database but keep separate cookie jars."""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    clients = []

    def factory() -> TestClient:
        test_client = TestClient(app)
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield factory

    for test_client in clients:
        test_client.__exit__(None, None, None)
    app.dependency_overrides.clear()


@pytest.fixture()
def client(make_client):
    return make_client()


def signup(client: TestClient, username: str, email: str = None, **overrides):
    payload = {
        "fullName": f"{username.title()} Tester",
        "username": username,
        "email": email or f"{username}@example.com",
        "password": "s3cret-pass",
        "branch": "Mumbai",
    }
    payload.update(overrides)
    return client.post("/api/user/signup", json=payload)


@pytest.fixture()
def alice(make_client):
    test_client = make_client()
    response = signup(test_client, "alice")
    assert response.status_code == 201
    return test_client


@pytest.fixture()
def bob(make_client):
    test_client = make_client()
    response = signup(test_client, "bob")
    assert response.status_code == 201
    return test_client


def expense_payload(**overrides):
    payload = {
        "date": "2024-01-05T00:00:00",
        "branch": "Mumbai",
        "expenseType": "Labour",
        "amount": 500,
        "modeOfPayment": "Cash",
    }
    payload.update(overrides)
    return payload
