"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Any, Callable, Generator
from uuid import uuid4

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from match_server.core.exceptions import ConnectionClosedError
from match_server.core.models import MatchSnapshot
from match_server.db.schema import Base
from match_server.db.sql_repository import SQLMatchStore

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine, expire_on_commit=False)


@pytest.fixture
def session_factory() -> Generator[sessionmaker[Session], None, None]:
    """Session factory on a test database. Tables are removed at teardown to make tests independent of each other."""
    Base.metadata.create_all(bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def sql_store(session_factory: sessionmaker[Session]) -> SQLMatchStore:
    return SQLMatchStore(session_factory)


# --- MOCK DEPENDENCIES ----
class MockConnection:
    """Stands in for a WebSocket: records every pushed payload."""

    def __init__(self) -> None:
        self.connection_id = uuid4().hex
        self.sent: list[dict[str, Any]] = []
        self.open = True

    @property
    def is_open(self) -> bool:
        return self.open

    async def send_json(self, payload: dict[str, Any]) -> None:
        if not self.open:
            raise ConnectionClosedError(f"{self.connection_id} is closed")
        self.sent.append(payload)

    def types(self) -> list[str]:
        return [payload["type"] for payload in self.sent]

    def last(self) -> dict[str, Any]:
        return self.sent[-1]


class MockOutbox:
    """Collects the snapshots the service asks to persist."""

    def __init__(self) -> None:
        self.snapshots: list[MatchSnapshot] = []

    def enqueue(self, snapshot: MatchSnapshot) -> None:
        self.snapshots.append(snapshot)


@pytest.fixture
def make_connection() -> Callable[[], MockConnection]:
    return MockConnection


@pytest.fixture
def mock_outbox() -> MockOutbox:
    return MockOutbox()
