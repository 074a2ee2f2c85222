"""Shared fixtures: temporary store, settings and a scripted oracle."""

import asyncio
from collections.abc import Sequence

import pytest
from fastapi.testclient import TestClient

from vent_ai.api.deps import get_oracle
from vent_ai.core.config import Settings
from vent_ai.db import create_db_engine, init_db
from vent_ai.main import create_app
from vent_ai.oracle.base import BaseOracle, ChatTurn
from vent_ai.store import MessageStore


class FakeOracle(BaseOracle):
    """Oracle double returning queued replies or raising queued errors.

    Set ``gate`` to an asyncio.Event to hold replies until it is set.
    """

    def __init__(self) -> None:
        self.results: list[str | Exception] = []
        self.calls: list[tuple[list[ChatTurn], str]] = []
        self.gate: asyncio.Event | None = None
        self.in_flight = 0
        self.max_in_flight = 0

    async def reply(self, turns: Sequence[ChatTurn], system_prompt: str) -> str:
        self.calls.append((list(turns), system_prompt))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
        finally:
            self.in_flight -= 1

        result = self.results.pop(0) if self.results else "I'm here for you."
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a temporary database."""
    return Settings(_env_file=None, database_path=tmp_path / "test.db")


@pytest.fixture
def engine(settings):
    """Create a temporary database engine with tables."""
    engine = create_db_engine(settings.database_path)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    """Message store on the temporary database."""
    store = MessageStore(engine)
    yield store
    store.close()


@pytest.fixture
def oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture
def app(settings, oracle):
    """Application wired to the temporary database and the scripted oracle."""
    app = create_app(settings)
    app.dependency_overrides[get_oracle] = lambda: oracle
    return app


@pytest.fixture
def client(app):
    """Test client with the application lifespan running."""
    with TestClient(app) as client:
        yield client
