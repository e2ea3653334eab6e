"""WebSocketManager broadcast and DI container wiring."""

import asyncio
import json

import pytest

from forexai.application.ports.event_publisher import TICK_UPDATE
from forexai.container import create_test_container
from forexai.infrastructure.external.deriv_adapter import DerivAdapter
from forexai.infrastructure.external.simulated_feed import SimulatedFeed
from forexai.infrastructure.persistence.repositories import InMemoryMarketDataRepository
from forexai.presentation.websocket.websocket_manager import WebSocketManager
from forexai.shared.config.settings import Settings
from tests.fakes import FakeFeed


class MockWebSocket:

    def __init__(self, fail=False):
        self.fail = fail
        self.accepted = False
        self.messages = []

    async def accept(self):
        self.accepted = True

    async def send_text(self, payload):
        if self.fail:
            raise RuntimeError("socket closed")
        self.messages.append(json.loads(payload))

    async def close(self):
        pass


class TestBroadcast:

    @pytest.mark.asyncio
    async def test_failed_client_is_dropped(self, event_bus):
        manager = WebSocketManager(event_bus)
        good, bad = MockWebSocket(), MockWebSocket(fail=True)
        await manager.connect(good)
        await manager.connect(bad)

        await manager.broadcast(json.dumps({"type": "tick_update", "data": {}}))

        assert good.accepted
        assert len(good.messages) == 1
        assert manager.client_count == 1

    @pytest.mark.asyncio
    async def test_bus_events_reach_clients(self, event_bus):
        manager = WebSocketManager(event_bus, topics=[TICK_UPDATE])
        client = MockWebSocket()
        await manager.connect(client)
        await manager.start()
        try:
            await event_bus.publish(TICK_UPDATE, {"symbol": "EURUSD", "price": 1.1})
            for _ in range(100):
                if client.messages:
                    break
                await asyncio.sleep(0.01)
        finally:
            await manager.stop()

        assert client.messages == [
            {"type": "tick_update", "data": {"symbol": "EURUSD", "price": 1.1}},
        ]
        assert manager.client_count == 0


class TestContainer:

    def test_simulated_and_in_memory_by_default(self):
        container = create_test_container()
        assert isinstance(container.feed_client, SimulatedFeed)
        assert isinstance(container.market_data_repository, InMemoryMarketDataRepository)
        assert container.db_manager is None

    def test_deriv_mode(self):
        container = create_test_container(Settings(feed_mode="deriv", db_enabled=False))
        assert isinstance(container.feed_client, DerivAdapter)

    def test_override(self):
        feed = FakeFeed()
        container = create_test_container(feed_client=feed)
        assert container.ingestion_pipeline.stats["feed"] == feed.stats

    def test_unknown_override(self):
        with pytest.raises(ValueError):
            create_test_container(nothing=object())

    def test_auto_trader_is_shared(self):
        container = create_test_container()
        assert container.auto_trade is container.auto_trade
        assert container.ingestion_pipeline._config_store is container.config_store

    def test_feed_timeout_follows_engine_config(self):
        container = create_test_container(Settings(feed_mode="deriv", db_enabled=False))
        adapter = container.feed_client
        assert adapter.request_timeout == 30.0

        container.config_store.update({"feed_request_timeout": 5.0})
        assert adapter.request_timeout == 5.0
