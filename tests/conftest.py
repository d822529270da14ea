# tests/conftest.py

import os

# Must be set before the app (and its settings) are imported.
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from starlette.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy_utils import create_database, database_exists, drop_database
from unittest.mock import MagicMock

from membership_service.main import app
from membership_service.api import deps
from membership_service.db.base_class import Base

import membership_service.models  # noqa: F401  registers every table on Base


# --- E2E Test Database Setup ---
TEST_DATABASE_URL = os.environ.get(
    "TEST_DATABASE_URL", "sqlite:///./membership_db_test.sqlite3"
)
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False} if TEST_DATABASE_URL.startswith("sqlite") else {},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    if database_exists(engine.url):
        drop_database(engine.url)
    create_database(engine.url)
    yield
    engine.dispose()
    drop_database(engine.url)


@pytest.fixture(scope="function")
def db_session():
    """
    A real session on a freshly created schema. The services commit (and
    roll back on conflicts) themselves, so each test gets its own tables
    instead of an outer transaction.
    """
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory(db_session):
    """
    Sessions on a separate engine for tests that run work on several threads
    at once. SQLite ignores FOR UPDATE, so there every transaction opens with
    BEGIN IMMEDIATE and takes the write lock up front. Close `db_session`
    before starting the threads so it holds no lock of its own.
    """
    if TEST_DATABASE_URL.startswith("sqlite"):
        threaded_engine = create_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

        @event.listens_for(threaded_engine, "connect")
        def _disable_pysqlite_begin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(threaded_engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
    else:
        threaded_engine = create_engine(TEST_DATABASE_URL, pool_size=10)

    yield sessionmaker(autocommit=False, autoflush=False, bind=threaded_engine)
    threaded_engine.dispose()


# --- Mock Dependencies Setup ---
class MockTokenPayload:
    def __init__(self, sub="user_123", name="Test User", roles=None):
        self.sub = sub
        self.name = name
        self.roles = roles or []

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles


def override_get_current_user():
    return MockTokenPayload()


# --- Test Client Fixtures ---
@pytest.fixture(scope="function")
def test_client():
    """
    Provides a TestClient where the database and authentication are mocked.
    This is for INTEGRATION tests.
    """
    app.dependency_overrides[deps.get_db] = lambda: MagicMock()
    app.dependency_overrides[deps.get_current_user] = override_get_current_user

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def test_client_e2e(db_session):
    """
    Provides a TestClient that uses the LIVE test database. Auth is real:
    send headers from tests.utils.auth.
    This is for E2E tests.
    """

    def override_get_db_e2e():
        yield db_session

    app.dependency_overrides[deps.get_db] = override_get_db_e2e

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()

