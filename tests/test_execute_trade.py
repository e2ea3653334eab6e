"""Execution Adapter: demo and live trade creation."""

import pytest

from forexai.application.use_cases.execute_trade_usecase import (
    ExecuteTradeUseCase,
    generate_trade_id,
)
from forexai.domain.entities.decision import Action, LogType
from forexai.domain.entities.trade import TradeStatus, TradeType
from forexai.domain.entities.user import TradingUser
from forexai.domain.exceptions.domain_errors import (
    BrokerExecutionError,
    FeedConnectivityError,
    InvalidTradeError,
)
from forexai.domain.value_objects.tick import PriceTick
from tests.fakes import FakeFeed, make_decision

DEMO_USER = TradingUser("u-demo", "basic", trading_active=True, ai_active=True, entry_amount=25.0)
LIVE_USER = TradingUser(
    "u-live", "premium", trading_active=True, ai_active=True,
    entry_amount=40.0, demo_mode=False,
)


def build(trades, price_cache, config_store, analysis_logs=None, feed=None):
    feed = feed or FakeFeed()
    use_case = ExecuteTradeUseCase(trades, feed, price_cache, config_store, analysis_logs)
    return use_case, feed


class TestDemoTrades:

    @pytest.mark.asyncio
    async def test_demo_trade_is_persisted_without_broker(self, trades, price_cache, config_store):
        use_case, feed = build(trades, price_cache, config_store)

        trade = await use_case.execute(DEMO_USER, "EURUSD", make_decision())

        assert trade.trade_id.startswith("AUTO_")
        assert trade.status == TradeStatus.ACTIVE
        assert trade.is_demo
        assert trade.trade_type == TradeType.BUY
        assert trade.amount == 25.0
        assert trade.broker_contract_id is None
        assert feed.orders == []
        assert await trades.get(trade.trade_id) == trade

    @pytest.mark.asyncio
    async def test_cached_price_is_preferred(self, trades, price_cache, config_store):
        price_cache.update(PriceTick("EURUSD", 1.105))
        use_case, _ = build(trades, price_cache, config_store)

        trade = await use_case.execute(DEMO_USER, "EURUSD", make_decision(price=1.1))
        assert trade.entry_price == pytest.approx(1.105)

    @pytest.mark.asyncio
    async def test_decision_levels_are_used(self, trades, price_cache, config_store):
        use_case, _ = build(trades, price_cache, config_store)
        decision = make_decision(stop_loss=1.09, take_profit=1.12)

        trade = await use_case.execute(DEMO_USER, "EURUSD", decision)
        assert trade.stop_loss == 1.09
        assert trade.take_profit == 1.12

    @pytest.mark.asyncio
    async def test_default_levels_buy(self, trades, price_cache, config_store):
        use_case, _ = build(trades, price_cache, config_store)
        trade = await use_case.execute(DEMO_USER, "EURUSD", make_decision(price=1.1))
        assert trade.stop_loss == pytest.approx(1.1 * 0.98)
        assert trade.take_profit == pytest.approx(1.1 * 1.03)

    @pytest.mark.asyncio
    async def test_default_levels_sell(self, trades, price_cache, config_store):
        use_case, _ = build(trades, price_cache, config_store)
        trade = await use_case.execute(
            DEMO_USER, "EURUSD", make_decision(Action.SELL, price=1.1),
        )
        assert trade.trade_type == TradeType.SELL
        assert trade.stop_loss == pytest.approx(1.1 * 1.02)
        assert trade.take_profit == pytest.approx(1.1 * 0.97)

    @pytest.mark.asyncio
    async def test_trade_is_logged(self, trades, price_cache, config_store, analysis_logs):
        use_case, _ = build(trades, price_cache, config_store, analysis_logs)
        trade = await use_case.execute(DEMO_USER, "EURUSD", make_decision())

        entries = await analysis_logs.list_recent("EURUSD")
        assert entries[0].log_type == LogType.TRADE
        assert entries[0].data["trade_id"] == trade.trade_id


class TestLiveTrades:

    @pytest.mark.asyncio
    async def test_contract_id_becomes_trade_id(self, trades, price_cache, config_store):
        feed = FakeFeed(buy_response={"contract_id": 987654})
        use_case, _ = build(trades, price_cache, config_store, feed=feed)

        trade = await use_case.execute(LIVE_USER, "EURUSD", make_decision())

        assert trade.trade_id == "987654"
        assert trade.broker_contract_id == "987654"
        assert not trade.is_demo
        order = feed.orders[0]
        assert order.contract_type == "CALL"
        assert order.amount == 40.0
        assert order.duration == 300

    @pytest.mark.asyncio
    async def test_sell_is_put(self, trades, price_cache, config_store):
        feed = FakeFeed()
        use_case, _ = build(trades, price_cache, config_store, feed=feed)
        await use_case.execute(LIVE_USER, "EURUSD", make_decision(Action.SELL))
        assert feed.orders[0].contract_type == "PUT"

    @pytest.mark.asyncio
    async def test_broker_rejection_creates_no_trade(self, trades, price_cache, config_store):
        feed = FakeFeed(buy_error=BrokerExecutionError("market closed"))
        use_case, _ = build(trades, price_cache, config_store, feed=feed)

        with pytest.raises(BrokerExecutionError):
            await use_case.execute(LIVE_USER, "EURUSD", make_decision())
        assert await trades.list_by_user(LIVE_USER.user_id) == []

    @pytest.mark.asyncio
    async def test_missing_contract_id_creates_no_trade(self, trades, price_cache, config_store):
        feed = FakeFeed(buy_response={})
        use_case, _ = build(trades, price_cache, config_store, feed=feed)

        with pytest.raises(BrokerExecutionError):
            await use_case.execute(LIVE_USER, "EURUSD", make_decision())
        assert await trades.list_by_user(LIVE_USER.user_id) == []

    @pytest.mark.asyncio
    async def test_feed_down_is_broker_error(self, trades, price_cache, config_store):
        feed = FakeFeed(buy_error=FeedConnectivityError("timeout"))
        use_case, _ = build(trades, price_cache, config_store, feed=feed)

        with pytest.raises(BrokerExecutionError):
            await use_case.execute(LIVE_USER, "EURUSD", make_decision())


class TestRejections:

    @pytest.mark.asyncio
    async def test_hold_is_not_executed(self, trades, price_cache, config_store):
        use_case, _ = build(trades, price_cache, config_store)
        with pytest.raises(InvalidTradeError):
            await use_case.execute(DEMO_USER, "EURUSD", make_decision(Action.HOLD, confidence=0.0))

    @pytest.mark.asyncio
    async def test_no_price_available(self, trades, price_cache, config_store):
        use_case, _ = build(trades, price_cache, config_store)
        with pytest.raises(InvalidTradeError):
            await use_case.execute(DEMO_USER, "EURUSD", make_decision(price=None))

    def test_generated_ids_are_unique(self):
        ids = {generate_trade_id(1_700_000_000.0) for _ in range(50)}
        assert len(ids) == 50
        assert all(i.startswith("AUTO_1700000000000_") for i in ids)
