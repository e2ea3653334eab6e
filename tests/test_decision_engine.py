"""Unit tests for DecisionEngine and RiskCalculator."""

import pytest

from forexai.domain.entities.decision import Action, RiskLevel
from forexai.domain.exceptions.domain_errors import ValidationError
from forexai.domain.services.decision_engine import DecisionConfig, DecisionEngine
from forexai.domain.services.risk_calculator import RiskCalculator, RiskConfig
from forexai.domain.value_objects.indicator_set import (
    BollingerBands,
    IndicatorSet,
    MACDSeries,
)
from forexai.domain.value_objects.market_context import (
    PatternFlags,
    SupportResistance,
    TrendInfo,
    VolumeInfo,
)

PRICE = 1.1

BULLISH_MACD = MACDSeries(macd=[0.002], signal=[0.001], histogram=[0.001])
BEARISH_MACD = MACDSeries(macd=[0.001], signal=[0.002], histogram=[-0.001])


def decide(
    indicators=None,
    patterns=None,
    levels=None,
    trend=None,
    volume=None,
    price=PRICE,
    config=None,
):
    engine = DecisionEngine(config or DecisionConfig())
    return engine.decide(
        indicators or IndicatorSet(),
        patterns or PatternFlags(),
        levels or SupportResistance(),
        trend or TrendInfo(),
        volume or VolumeInfo(),
        price,
    )


class TestScoring:

    def test_no_signals_is_hold_with_zero_confidence(self):
        decision = decide()
        assert decision.action == Action.HOLD
        assert decision.confidence == 0.0
        assert decision.reasons == ()

    def test_bullish_only(self):
        decision = decide(IndicatorSet(rsi=[25.0], macd=BULLISH_MACD, atr=[0.001]))

        assert decision.action == Action.BUY
        assert decision.bullish_signals == pytest.approx(3.5)
        assert decision.bearish_signals == 0.0
        assert decision.confidence == pytest.approx(0.8)
        assert "MACD bullish crossover" in decision.reasons

    def test_bearish_only(self):
        decision = decide(IndicatorSet(rsi=[75.0], macd=BEARISH_MACD))
        assert decision.action == Action.SELL
        assert decision.confidence == pytest.approx(0.8)

    def test_volume_bonus_is_clamped(self):
        decision = decide(
            IndicatorSet(rsi=[25.0], macd=BULLISH_MACD),
            volume=VolumeInfo(average=100, current=200, ratio=2.0, is_high_volume=True),
        )
        assert decision.action == Action.BUY
        assert decision.confidence == pytest.approx(0.95)
        assert "High volume confirmation" in decision.reasons

    def test_volume_alone_is_not_a_vote(self):
        decision = decide(volume=VolumeInfo(is_high_volume=True))
        assert decision.action == Action.HOLD
        assert decision.confidence == 0.0

    def test_tie_is_hold(self):
        decision = decide(
            IndicatorSet(rsi=[25.0], macd=BEARISH_MACD),
            levels=SupportResistance(resistance=[PRICE * 1.0005]),
        )
        assert decision.bullish_signals == pytest.approx(2.0)
        assert decision.bearish_signals == pytest.approx(2.0)
        assert decision.action == Action.HOLD
        assert decision.confidence == 0.0

    def test_tie_with_high_volume_stays_at_zero(self):
        decision = decide(
            IndicatorSet(rsi=[25.0], macd=BEARISH_MACD),
            levels=SupportResistance(resistance=[PRICE * 1.0005]),
            volume=VolumeInfo(average=100, current=200, ratio=2.0, is_high_volume=True),
        )
        assert decision.action == Action.HOLD
        assert decision.confidence == 0.0
        assert decision.suggested_stop_loss is None

    def test_below_threshold_keeps_confidence(self):
        decision = decide(
            IndicatorSet(
                rsi=[25.0],
                macd=BULLISH_MACD,
                bollinger=BollingerBands(upper=[1.2], middle=[1.15], lower=[PRICE]),
            ),
            patterns=PatternFlags(hammer=True),
            levels=SupportResistance(resistance=[PRICE * 1.0005]),
            trend=TrendInfo(direction="uptrend", strength=2.0),
        )
        # 6.5 alcista vs 0.5 bajista → 6.5 / 7 × 0.8 = 0.743
        assert decision.bullish_signals == pytest.approx(6.5)
        assert decision.action == Action.HOLD
        assert decision.confidence == pytest.approx(0.743)
        assert decision.suggested_stop_loss is None
        assert any("below threshold" in r for r in decision.reasons)

    def test_weak_trend_is_ignored(self):
        decision = decide(trend=TrendInfo(direction="uptrend", strength=0.5))
        assert decision.bullish_signals == 0.0

    def test_lower_threshold_allows_action(self):
        decision = decide(
            IndicatorSet(rsi=[25.0], macd=BEARISH_MACD, atr=[0.001]),
            levels=SupportResistance(support=[PRICE * 0.9995]),
            config=DecisionConfig(confidence_threshold=0.3),
        )
        # 2.5 alcista vs 1.5 bajista → 2.5 / 4 × 0.8 = 0.5
        assert decision.action == Action.BUY
        assert decision.confidence == pytest.approx(0.5)

    def test_is_deterministic(self):
        args = (IndicatorSet(rsi=[25.0], macd=BULLISH_MACD, atr=[0.0015]),)
        assert decide(*args) == decide(*args)


class TestRiskLevels:

    def test_buy_levels_from_atr(self):
        decision = decide(IndicatorSet(rsi=[25.0], macd=BULLISH_MACD, atr=[0.001]))
        assert decision.suggested_stop_loss == pytest.approx(PRICE - 0.002)
        assert decision.suggested_take_profit == pytest.approx(PRICE + 0.003)

    def test_sell_levels_from_atr(self):
        decision = decide(IndicatorSet(rsi=[75.0], macd=BEARISH_MACD, atr=[0.001]))
        assert decision.suggested_stop_loss == pytest.approx(PRICE + 0.002)
        assert decision.suggested_take_profit == pytest.approx(PRICE - 0.003)

    def test_no_atr_no_levels(self):
        decision = decide(IndicatorSet(rsi=[25.0], macd=BULLISH_MACD))
        assert decision.suggested_stop_loss is None
        assert decision.suggested_take_profit is None

    @pytest.mark.parametrize("confidence,atr,rsi,expected", [
        (0.9, 0.0005, 50.0, RiskLevel.LOW),
        (0.8, 0.0025, 50.0, RiskLevel.MEDIUM),
        (0.5, 0.0015, 50.0, RiskLevel.MEDIUM),
        (0.5, 0.0025, 15.0, RiskLevel.HIGH),
        (0.7, None, None, RiskLevel.LOW),
    ])
    def test_risk_level(self, confidence, atr, rsi, expected):
        assert RiskCalculator.risk_level(confidence, atr, rsi) == expected

    def test_percentage_levels(self):
        calc = RiskCalculator(RiskConfig())
        assert calc.percentage_levels(Action.BUY, 1.0) == pytest.approx((0.98, 1.03))
        assert calc.percentage_levels(Action.SELL, 1.0) == pytest.approx((1.02, 0.97))

    def test_percentage_levels_reject_hold(self):
        with pytest.raises(ValidationError):
            RiskCalculator().percentage_levels(Action.HOLD, 1.0)
