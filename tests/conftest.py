"""Shared fixtures for the ForexAI test suite."""

from __future__ import annotations

from typing import AsyncIterator

import pytest
import pytest_asyncio

from forexai.application.state.engine_config_store import EngineConfigStore
from forexai.application.state.price_cache import PriceCache
from forexai.infrastructure.external.event_bus_adapter import EventBus
from forexai.infrastructure.persistence.database import DatabaseManager
from forexai.infrastructure.persistence.repositories import (
    InMemoryAnalysisLogRepository,
    InMemoryMarketDataRepository,
    InMemoryTradeRepository,
    InMemoryUserRepository,
)
from tests.fakes import RecordingPublisher


@pytest.fixture
def config_store() -> EngineConfigStore:
    return EngineConfigStore()


@pytest.fixture
def price_cache() -> PriceCache:
    return PriceCache()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus(max_queue_size=100)


@pytest.fixture
def market_data() -> InMemoryMarketDataRepository:
    return InMemoryMarketDataRepository()


@pytest.fixture
def trades() -> InMemoryTradeRepository:
    return InMemoryTradeRepository()


@pytest.fixture
def analysis_logs() -> InMemoryAnalysisLogRepository:
    return InMemoryAnalysisLogRepository()


@pytest.fixture
def users() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest_asyncio.fixture
async def sqlite_db() -> AsyncIterator[DatabaseManager]:
    """SQLite en memoria con el esquema completo."""
    db = DatabaseManager(url="sqlite+aiosqlite:///:memory:")
    await db.initialize()
    await db.create_all()
    yield db
    await db.close()
