import os

os.environ["ENV"] = "test"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///./inbox_sync_test.db")

from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import app.models  # noqa: E402,F401
from app.db import Base, SessionLocal, engine, get_db  # noqa: E402
from app.main import create_app  # noqa: E402
from app.routers.utils.dependencies import get_blob_store, get_provider  # noqa: E402

pytest_plugins = [
    "tests.fixtures.user_fixtures",
    "tests.fixtures.account_fixtures",
    "tests.fixtures.chat_fixtures",
    "tests.fixtures.message_fixtures",
    "tests.fixtures.provider_fixtures",
]


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create all tables once for the test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db():
    """Session for one test; every table is emptied afterwards."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
        session.close()


@pytest.fixture
def mock_provider():
    """Provider stand-in; tests set return values per call."""
    provider = MagicMock()
    provider.verify_webhook.return_value = True
    return provider


@pytest.fixture
def client(db, mock_provider):
    """Test client with the db session and provider overridden."""
    app = create_app(testing=True)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_provider] = lambda: mock_provider
    app.dependency_overrides[get_blob_store] = lambda: None
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
