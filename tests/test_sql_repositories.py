"""SQLAlchemy repositories for analysis logs and users (SQLite in memory)."""

import pytest

from forexai.domain.entities.decision import AnalysisLog, LogType
from forexai.domain.entities.user import TradingUser
from forexai.infrastructure.persistence.repositories import (
    AnalysisLogRepositoryImpl,
    UserRepositoryImpl,
)


class TestAnalysisLogRepository:

    @pytest.mark.asyncio
    async def test_newest_first_and_filtered(self, sqlite_db):
        repo = AnalysisLogRepositoryImpl(sqlite_db)
        await repo.append(AnalysisLog(LogType.ANALYSIS, "EURUSD", "first", 0.5,
                                      {"action": "hold"}, created_at=1_700_000_000.0))
        await repo.append(AnalysisLog(LogType.TRADE, "EURUSD", "second", 0.9,
                                      created_at=1_700_000_060.0))
        await repo.append(AnalysisLog(LogType.ANALYSIS, "GBPUSD", "other",
                                      created_at=1_700_000_030.0))

        entries = await repo.list_recent("EURUSD")

        assert [e.message for e in entries] == ["second", "first"]
        assert entries[1].data == {"action": "hold"}
        assert entries[1].created_at == pytest.approx(1_700_000_000.0)
        assert len(await repo.list_recent(limit=2)) == 2


class TestUserRepository:

    @pytest.mark.asyncio
    async def test_only_auto_trading_users_are_listed(self, sqlite_db):
        repo = UserRepositoryImpl(sqlite_db)
        await repo.save(TradingUser("a", "premium", trading_active=True, ai_active=True,
                                    max_daily_trades=-1))
        await repo.save(TradingUser("b", "basic", trading_active=True, ai_active=False))
        await repo.save(TradingUser("c", "basic", status="suspended",
                                    trading_active=True, ai_active=True))

        users = await repo.list_auto_trading_users()

        assert [u.user_id for u in users] == ["a"]
        assert users[0].max_daily_trades == -1
        assert (await repo.get("b")).ai_active is False
        assert await repo.get("missing") is None

    @pytest.mark.asyncio
    async def test_save_overwrites(self, sqlite_db):
        repo = UserRepositoryImpl(sqlite_db)
        await repo.save(TradingUser("a", "basic"))
        await repo.save(TradingUser("a", "premium", entry_amount=40.0))

        stored = await repo.get("a")
        assert stored.subscription_tier == "premium"
        assert stored.entry_amount == pytest.approx(40.0)
