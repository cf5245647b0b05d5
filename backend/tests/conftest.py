"""
Pytest configuration and fixtures

Every test gets a fresh SQLite database file under tmp_path. The FastAPI app
is pointed at it by overriding the ``get_db`` dependency.
"""
import os
import tempfile

import pytest

# Must be set before exoatlas.core.config is imported
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(tempfile.gettempdir(), 'exoatlas_import.db')}")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["STORE_RETRY_BACKOFF_SECONDS"] = "0"

from fastapi.testclient import TestClient

from exoatlas.db.session import create_db_engine, create_tables, get_db, get_session_factory
from exoatlas.main import app
from exoatlas.models.user import User, UserRole
from exoatlas.api.endpoints.auth import hash_password, issue_token


@pytest.fixture(scope="function")
def test_engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'catalog.db'}")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    return get_session_factory(test_engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _make_user(db, username: str, role: UserRole) -> User:
    user = User(username=username, password_hash=hash_password("pw"), role=role.value)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def researcher(db_session):
    return _make_user(db_session, "vera", UserRole.RESEARCHER)


@pytest.fixture
def viewer(db_session):
    return _make_user(db_session, "carl", UserRole.VIEWER)


@pytest.fixture
def researcher_headers(researcher):
    token = issue_token(researcher).access_token
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def viewer_headers(viewer):
    token = issue_token(viewer).access_token
    return {"Authorization": f"Bearer {token}"}
