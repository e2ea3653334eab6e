"""SimulatedFeed: synthetic history, random-walk ticks and candle building."""

import random

import pytest

from forexai.application.ports.market_data_provider import (
    FEED_CANDLE_TOPIC,
    FEED_STATUS_TOPIC,
    FEED_TICK_TOPIC,
    BuyOrder,
)
from forexai.domain.exceptions.domain_errors import (
    FeedConnectivityError,
    UnsupportedSymbolError,
)
from forexai.infrastructure.external.simulated_feed import SimulatedFeed, generate_candles


def make_feed(event_bus, history_count=5):
    return SimulatedFeed(
        event_bus, tick_interval=60.0, rng=random.Random(7), history_count=history_count,
    )


class TestGenerateCandles:

    def test_series_is_contiguous_and_valid(self):
        candles = generate_candles(
            "EURUSD", "5m", 10, 1.085, end_time=1_700_000_000.0, rng=random.Random(1),
        )

        assert len(candles) == 10
        assert candles[0].timestamp == 1_699_996_800.0
        assert candles[-1].timestamp == 1_699_999_500.0
        for prev, cur in zip(candles, candles[1:]):
            assert cur.timestamp - prev.timestamp == 300
            assert cur.open == prev.close
        for c in candles:
            assert c.high >= max(c.open, c.close)
            assert c.low <= min(c.open, c.close)
            assert c.volume > 0

    def test_seeded_series_is_reproducible(self):
        a = generate_candles("EURUSD", "1m", 5, 1.1, end_time=1_700_000_000.0, rng=random.Random(3))
        b = generate_candles("EURUSD", "1m", 5, 1.1, end_time=1_700_000_000.0, rng=random.Random(3))
        assert a == b


class TestSubscriptions:

    @pytest.mark.asyncio
    async def test_candle_subscription_publishes_history(self, event_bus):
        candles = await event_bus.subscribe(FEED_CANDLE_TOPIC, "test")
        feed = make_feed(event_bus, history_count=5)

        await feed.subscribe_candles("EURUSD", 300)

        assert candles.qsize() == 5
        first = candles.get_nowait()
        assert (first.symbol, first.timeframe) == ("EURUSD", "5m")

    @pytest.mark.asyncio
    async def test_unknown_symbol(self, event_bus):
        feed = make_feed(event_bus)
        with pytest.raises(UnsupportedSymbolError):
            await feed.subscribe_ticks("BTCUSD")
        with pytest.raises(UnsupportedSymbolError):
            await feed.subscribe_candles("BTCUSD", 60)

    @pytest.mark.asyncio
    async def test_unknown_granularity(self, event_bus):
        feed = make_feed(event_bus)
        with pytest.raises(FeedConnectivityError):
            await feed.subscribe_candles("EURUSD", 7)


class TestTicks:

    @pytest.mark.asyncio
    async def test_tick_has_fixed_spread(self, event_bus):
        ticks = await event_bus.subscribe(FEED_TICK_TOPIC, "test")
        feed = make_feed(event_bus)
        await feed.subscribe_ticks("EURUSD")

        tick = await feed.emit_tick("EURUSD", now=1_700_000_000.0)

        assert ticks.get_nowait() == tick
        assert tick.ask - tick.bid == pytest.approx(0.0002)
        assert abs(tick.price / 1.085 - 1) <= 0.0005

    @pytest.mark.asyncio
    async def test_candle_closes_on_bucket_rollover(self, event_bus):
        feed = make_feed(event_bus, history_count=1)
        await feed.subscribe_candles("EURUSD", 60)
        candles = await event_bus.subscribe(FEED_CANDLE_TOPIC, "after-history")

        first = await feed.emit_tick("EURUSD", now=1_700_000_000.0)
        second = await feed.emit_tick("EURUSD", now=1_700_000_010.0)
        assert candles.empty()

        await feed.emit_tick("EURUSD", now=1_700_000_040.0)

        closed = candles.get_nowait()
        assert closed.timestamp == 1_699_999_980.0
        assert closed.open == first.price
        assert closed.close == second.price
        assert closed.high == max(first.price, second.price)
        assert closed.volume == 2.0


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_connect_publishes_status(self, event_bus):
        statuses = await event_bus.subscribe(FEED_STATUS_TOPIC, "test")
        feed = make_feed(event_bus)

        await feed.connect()
        try:
            assert feed.is_connected
            assert statuses.get_nowait().state == "connected"
            assert feed.stats["provider"] == "simulated"
        finally:
            await feed.disconnect()
        assert not feed.is_connected

    @pytest.mark.asyncio
    async def test_buy_requires_connection(self, event_bus):
        feed = make_feed(event_bus)
        order = BuyOrder(symbol="EURUSD", contract_type="PUT", amount=10.0)

        with pytest.raises(FeedConnectivityError):
            await feed.buy(order)

        await feed.connect()
        try:
            receipt = await feed.buy(order)
        finally:
            await feed.disconnect()
        assert receipt["contract_id"].startswith("SIM_")
        assert feed.stats["orders"] == 1
