"""
Shared test fixtures.

Sets up an isolated SQLite database so tests never touch the
real database. DATABASE_URL is pointed at the test file before
the application is imported, so the application's own engine
and the lock manager's short-lived sessions all talk to the
same database as the fixtures.
"""

import os

os.environ["DATABASE_URL"] = "sqlite:///./test.db"

import pytest
from fastapi.testclient import TestClient

from poker_settlement.main import app
from poker_settlement.models import Base
from poker_settlement.models.base import SessionLocal, engine, get_db


@pytest.fixture(autouse=True)
def setup_database():
    """
    Create all tables before each test, drop them after.

    autouse=True means every test gets this automatically.
    This ensures each test starts with a clean database.
    """
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory():
    """The session factory, for tests that need several sessions at once."""
    return SessionLocal


@pytest.fixture
def db_session(session_factory):
    """Provide a database session for direct service testing."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db_session):
    """
    Provide a test client with the test database.

    We override the get_db dependency so the FastAPI app
    uses our test session instead of opening its own.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
