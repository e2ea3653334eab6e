"""Unit tests for the asyncio.Queue fan-out EventBus."""

import pytest

from forexai.infrastructure.external.event_bus_adapter import EventBus


class TestEventBus:

    @pytest.mark.asyncio
    async def test_fan_out_to_every_subscriber(self):
        bus = EventBus()
        q1 = await bus.subscribe("tick_update", "ws")
        q2 = await bus.subscribe("tick_update", "audit")

        await bus.publish("tick_update", {"price": 1.1})

        assert q1.get_nowait() == {"price": 1.1}
        assert q2.get_nowait() == {"price": 1.1}

    @pytest.mark.asyncio
    async def test_topics_are_isolated(self):
        bus = EventBus()
        ticks = await bus.subscribe("tick_update", "ws")
        await bus.publish("candle_update", {"close": 1.1})
        assert ticks.empty()

    @pytest.mark.asyncio
    async def test_publish_without_subscribers(self):
        bus = EventBus()
        await bus.publish("ai_analysis", {})
        assert bus.stats["published"] == 1

    @pytest.mark.asyncio
    async def test_slow_consumer_drops_oldest(self):
        bus = EventBus(max_queue_size=2)
        slow = await bus.subscribe("tick_update", "slow")

        for i in range(3):
            await bus.publish("tick_update", i)

        assert [slow.get_nowait(), slow.get_nowait()] == [1, 2]
        assert bus.stats["dropped"] == 1

    @pytest.mark.asyncio
    async def test_unsubscribe_all(self):
        bus = EventBus()
        await bus.subscribe("a", "x")
        await bus.subscribe("b", "y")

        await bus.unsubscribe_all("a")
        assert bus.subscriber_count == 1
        await bus.unsubscribe_all()
        assert bus.subscriber_count == 0
