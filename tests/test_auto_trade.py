"""AutoTradeUseCase: eligibility, daily caps and per-user serialization."""

import asyncio

import pytest

from forexai.application.ports.event_publisher import AUTO_TRADE_EXECUTED
from forexai.application.use_cases.auto_trade_usecase import AutoTradeUseCase, start_of_day
from forexai.application.use_cases.execute_trade_usecase import ExecuteTradeUseCase
from forexai.domain.entities.decision import Action
from forexai.domain.entities.user import TradingUser
from forexai.domain.exceptions.domain_errors import BrokerExecutionError
from forexai.infrastructure.persistence.repositories import InMemoryUserRepository
from tests.fakes import FakeFeed, make_decision


def user(user_id, tier="basic", **kwargs):
    kwargs.setdefault("trading_active", True)
    kwargs.setdefault("ai_active", True)
    return TradingUser(user_id, tier, **kwargs)


def build(users, trades, price_cache, config_store, publisher, feed=None):
    execute = ExecuteTradeUseCase(trades, feed or FakeFeed(), price_cache, config_store)
    return AutoTradeUseCase(
        InMemoryUserRepository(users), trades, execute, publisher, config_store,
    )


class TestEligibility:

    @pytest.mark.asyncio
    async def test_only_eligible_users_trade(self, trades, price_cache, config_store, publisher):
        auto = build(
            [
                user("basic-1"),
                user("premium-1", "premium", max_daily_trades=-1),
                user("free-1", "free"),
                user("paused", trading_active=False),
                user("no-ai", ai_active=False),
                user("suspended", status="suspended"),
            ],
            trades, price_cache, config_store, publisher,
        )

        executed = await auto.execute("EURUSD", make_decision())

        assert sorted(t.user_id for t in executed) == ["basic-1", "premium-1"]
        events = publisher.of(AUTO_TRADE_EXECUTED)
        assert len(events) == 2
        assert {e["user_id"] for e in events} == {"basic-1", "premium-1"}
        assert events[0]["symbol"] == "EURUSD"
        assert events[0]["action"] == "buy"

    @pytest.mark.asyncio
    async def test_hold_executes_nothing(self, trades, price_cache, config_store, publisher):
        auto = build([user("basic-1")], trades, price_cache, config_store, publisher)
        executed = await auto.execute("EURUSD", make_decision(Action.HOLD, confidence=0.0))
        assert executed == []
        assert publisher.events == []


class TestDailyCap:

    @pytest.mark.asyncio
    async def test_user_cap_is_enforced(self, trades, price_cache, config_store, publisher):
        auto = build([user("basic-1", max_daily_trades=2)], trades, price_cache, config_store, publisher)

        results = [await auto.execute("EURUSD", make_decision()) for _ in range(3)]

        assert [len(r) for r in results] == [1, 1, 0]
        assert await trades.count_opened_since("basic-1", 0) == 2

    @pytest.mark.asyncio
    async def test_tier_cap_is_the_stricter_bound(self, trades, price_cache, config_store, publisher):
        config_store.update({"daily_trade_caps": {"free": 0, "basic": 1, "premium": -1}})
        auto = build([user("basic-1", max_daily_trades=10)], trades, price_cache, config_store, publisher)

        first = await auto.execute("EURUSD", make_decision())
        second = await auto.execute("EURUSD", make_decision())
        assert (len(first), len(second)) == (1, 0)

    @pytest.mark.asyncio
    async def test_unlimited_premium(self, trades, price_cache, config_store, publisher):
        auto = build(
            [user("premium-1", "premium", max_daily_trades=-1)],
            trades, price_cache, config_store, publisher,
        )
        for _ in range(5):
            await auto.execute("EURUSD", make_decision())
        assert await trades.count_opened_since("premium-1", 0) == 5

    @pytest.mark.asyncio
    async def test_concurrent_cycles_respect_cap(self, trades, price_cache, config_store, publisher):
        auto = build([user("basic-1", max_daily_trades=1)], trades, price_cache, config_store, publisher)

        results = await asyncio.gather(*(
            auto.execute("EURUSD", make_decision()) for _ in range(4)
        ))

        assert sum(len(r) for r in results) == 1
        assert await trades.count_opened_since("basic-1", 0) == 1


class TestFailures:

    @pytest.mark.asyncio
    async def test_broker_error_skips_user(self, trades, price_cache, config_store, publisher):
        feed = FakeFeed(buy_error=BrokerExecutionError("rejected"))
        auto = build(
            [user("live", "premium", demo_mode=False), user("demo", "premium")],
            trades, price_cache, config_store, publisher, feed=feed,
        )

        executed = await auto.execute("EURUSD", make_decision())

        assert [t.user_id for t in executed] == ["demo"]
        assert len(publisher.of(AUTO_TRADE_EXECUTED)) == 1


class TestStartOfDay:

    def test_midnight_utc(self):
        # 2023-11-14 22:13:20 UTC
        assert start_of_day(1_700_000_000.0) == 1_699_920_000.0
