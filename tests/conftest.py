"""Pytest fixtures for testing"""

import os

# Must be set before the application modules build their engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from datetime import datetime, timezone
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from nivi_budget.api.main import create_app
from nivi_budget.api.dependencies import get_identity_client, get_snapshot_writer
from nivi_budget.domain.allocation import seed_categories
from nivi_budget.domain.exceptions import InvalidCredentialsError
from nivi_budget.domain.models import FinanceState
from nivi_budget.infrastructure.database.models import Base
from nivi_budget.infrastructure.database.session import get_db
from nivi_budget.infrastructure.database.snapshots import SnapshotWriter


# Test database: one shared in-memory connection so background saves see the same data
TEST_DATABASE_URL = "sqlite://"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TOKENS = {"token-alice": "alice", "token-bob": "bob"}


class StubIdentityClient:
    """Resolves the fixed test tokens without a network call"""

    def __init__(self, tokens: dict[str, str]):
        self.tokens = tokens

    async def resolve_user(self, token: str) -> str:
        if token not in self.tokens:
            raise InvalidCredentialsError("unknown token")
        return self.tokens[token]


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database and stubbed identity service"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_client] = lambda: StubIdentityClient(TOKENS)
    app.dependency_overrides[get_snapshot_writer] = lambda: SnapshotWriter(TestingSessionLocal)
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": "Bearer token-alice"}


@pytest.fixture
def funded_state() -> FinanceState:
    """Default categories allocated from an income of 10000"""
    return FinanceState(income=10000.0, categories=seed_categories(10000.0))


@pytest.fixture
def fixed_date() -> datetime:
    return datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def session_factory() -> sessionmaker:
    """Session factory bound to the test database, as the snapshot writer uses it"""
    return TestingSessionLocal
