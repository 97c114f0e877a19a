"""
Pytest fixtures for testing
"""
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from budgetbook.auth import hash_password
from budgetbook.infrastructure.db.session import Base
from budgetbook.infrastructure.db.models import User
from budgetbook.api.deps import get_db, get_summary_strategy


def _enable_sqlite_foreign_keys(engine) -> None:
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture
def db_engine():
    """Create in-memory SQLite engine for tests (one shared connection)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine)


@pytest.fixture
def db_session(session_factory) -> Session:
    """Create database session for tests"""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def make_user(session: Session, email: str) -> User:
    user = User(id=uuid.uuid4(), email=email, password_hash=hash_password("password123"))
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def owner(db_session) -> User:
    """Пользователь-владелец ленты"""
    return make_user(db_session, "owner@example.com")


@pytest.fixture
def other_owner(db_session) -> User:
    """Второй пользователь (для проверок владения)"""
    return make_user(db_session, "other@example.com")


# ── API ──────────────────────────────────────────────────────────────────────

@pytest.fixture
def client(session_factory):
    """Test client для FastAPI: get_db -> SQLite session"""
    from budgetbook.main import app

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def use_incremental_strategy():
    from budgetbook.main import app
    app.dependency_overrides[get_summary_strategy] = lambda: "incremental"
    yield
    app.dependency_overrides.pop(get_summary_strategy, None)


def register_and_login(client: TestClient, email: str, password: str = "password123") -> dict:
    response = client.post("/api/v1/auth/register", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def authenticated_client(client):
    """Client с авторизованной сессией"""
    register_and_login(client, "api-user@example.com")
    return client
