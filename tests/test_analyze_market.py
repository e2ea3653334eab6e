"""AnalyzeMarketUseCase end to end over the in-memory store."""

import pytest

from forexai.application.state.engine_config_store import EngineConfigStore
from forexai.application.use_cases.analyze_market_usecase import AnalyzeMarketUseCase
from forexai.domain.entities.decision import Action, LogType
from forexai.shared.config.settings import EngineConfig
from tests.fakes import FailingAnalysisLogRepository, make_candles, monotonic_uptrend, zigzag_uptrend


@pytest.fixture
def use_case(market_data, analysis_logs, config_store):
    return AnalyzeMarketUseCase(market_data, analysis_logs, config_store)


class TestInsufficientData:

    @pytest.mark.asyncio
    async def test_empty_store_is_hold(self, use_case, analysis_logs):
        decision = await use_case.analyze("EURUSD", "5m")

        assert decision.action == Action.HOLD
        assert decision.confidence == 0.0
        assert decision.error is not None
        assert decision.symbol == "EURUSD"

        entries = await analysis_logs.list_recent()
        assert len(entries) == 1
        assert entries[0].log_type == LogType.ERROR

    @pytest.mark.asyncio
    async def test_49_candles_is_hold(self, use_case, market_data):
        await market_data.upsert_candles(make_candles([1.1 + 0.001 * i for i in range(49)]))
        decision = await use_case.analyze("EURUSD", "5m")
        assert decision.action == Action.HOLD
        assert "Insufficient data" in decision.reasons

    @pytest.mark.asyncio
    async def test_fifty_candles_runs_full_analysis(self, use_case, market_data):
        await market_data.upsert_candles(make_candles([1.1 + 0.001 * (i % 3) for i in range(50)]))
        decision = await use_case.analyze("EURUSD", "5m")
        assert decision.error is None
        assert decision.current_price is not None


class TestScenarios:

    @pytest.mark.asyncio
    async def test_zigzag_uptrend_is_buy(self, use_case, market_data, analysis_logs):
        candles = zigzag_uptrend()
        await market_data.upsert_candles(candles)

        decision = await use_case.analyze("EURUSD", "5m")

        assert decision.action == Action.BUY
        assert decision.confidence == pytest.approx(0.8)
        assert decision.bullish_signals == pytest.approx(3.5)
        assert decision.bearish_signals == 0.0
        assert decision.current_price == pytest.approx(candles[-1].close)
        assert decision.suggested_stop_loss < decision.current_price < decision.suggested_take_profit
        assert decision.indicators_summary["trend"] == "uptrend"

        entries = await analysis_logs.list_recent("EURUSD")
        assert entries[0].log_type == LogType.ANALYSIS
        assert entries[0].confidence == pytest.approx(0.8)

    @pytest.mark.asyncio
    async def test_steady_rise_is_overbought_hold(self, use_case, market_data):
        await market_data.upsert_candles(monotonic_uptrend())

        decision = await use_case.analyze("EURUSD", "5m")

        assert decision.action == Action.HOLD
        assert decision.confidence < 0.75
        assert decision.indicators_summary["rsi"] == pytest.approx(100.0)
        assert any("overbought" in r for r in decision.reasons)

    @pytest.mark.asyncio
    async def test_config_change_applies_to_next_run(self, market_data, analysis_logs):
        store = EngineConfigStore(EngineConfig())
        use_case = AnalyzeMarketUseCase(market_data, analysis_logs, store)
        await market_data.upsert_candles(zigzag_uptrend())

        store.update({"confidence_threshold": 0.9})
        decision = await use_case.analyze("EURUSD", "5m")

        assert decision.action == Action.HOLD
        assert decision.confidence == pytest.approx(0.8)

    @pytest.mark.asyncio
    async def test_uses_only_requested_timeframe(self, use_case, market_data):
        await market_data.upsert_candles(zigzag_uptrend())
        decision = await use_case.analyze("EURUSD", "1h")
        assert decision.action == Action.HOLD
        assert decision.error is not None


class TestLogFailures:

    @pytest.mark.asyncio
    async def test_log_failure_does_not_block_decision(self, market_data, config_store):
        use_case = AnalyzeMarketUseCase(market_data, FailingAnalysisLogRepository(), config_store)
        await market_data.upsert_candles(zigzag_uptrend())

        decision = await use_case.analyze("EURUSD", "5m")
        assert decision.action == Action.BUY
