# tests/conftest.py

import pytest
from starlette.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rfq_service.main import app
from rfq_service.api import deps
from rfq_service.db.session import get_db
from rfq_service.models import Base

from tests.utils.auth import make_agency_principal


# --- Test Database Setup ---
# One in-memory SQLite database shared across connections for the test run.
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


class PrincipalSwitch:
    """Holds the principal the overridden auth dependency returns."""

    def __init__(self, principal):
        self.principal = principal

    def __call__(self):
        return self.principal


@pytest.fixture(scope="function")
def auth():
    return PrincipalSwitch(make_agency_principal())


@pytest.fixture(scope="function")
def test_client(db_session, auth):
    """
    Provides a TestClient backed by the SQLite test database with auth mocked.
    Switch callers by assigning auth.principal inside a test.
    """

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[deps.get_current_user] = auth

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
