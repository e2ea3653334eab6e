"""
ForexAI – Domain Service: Decision Engine
=========================================
Combina indicadores, patrones, niveles, tendencia y volumen en UNA
recomendación con confianza. Voto ponderado, no probabilístico.

═══════════════════════════════════════════════════════════════
            SCORING
═══════════════════════════════════════════════════════════════

  RSI < 30                              bullish += 2
  RSI > 70                              bearish += 2
  MACD > signal AND histogram > 0       bullish += 1.5  (inverso → bearish)
  price ≤ Bollinger lower               bullish += 1
  price ≥ Bollinger upper               bearish += 1
  uptrend con fuerza > 1%               bullish += 1    (downtrend → bearish)
  patrón alcista (hammer, engulfing ↑)  bullish += 1    (bajista → bearish)
  price a < 0.1% de un soporte          bullish += 0.5  (resistencia → bearish)
  volumen > 1.5× promedio               signal_strength = 0.2

DECISIÓN:
  total = bullish + bearish
  action = buy | sell | hold (empate, confianza 0)
  confidence = max(bullish, bearish) / total × 0.8 + signal_strength
  confidence = min(confidence, 0.95)

  El bonus de volumen es un término plano que se suma DESPUÉS del ratio,
  no un voto para un lado.

  confidence < threshold → action = HOLD, pero la confianza calculada
  se conserva para el log.

PUREZA:
  Mismas entradas → misma Decision. Sin reloj ni aleatoriedad; el caso
  de uso agrega símbolo, timestamp y precio.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from forexai.domain.entities.decision import Action, Decision
from forexai.domain.services.risk_calculator import RiskCalculator
from forexai.domain.value_objects.indicator_set import IndicatorSet, last
from forexai.domain.value_objects.market_context import (
    PatternFlags,
    SupportResistance,
    TrendInfo,
    VolumeInfo,
)

CONFIDENCE_SCALE = 0.8


@dataclass
class DecisionConfig:
    """Pesos y umbrales del scoring."""

    confidence_threshold: float = 0.75
    max_confidence: float = 0.95
    rsi_oversold: float = 30.0
    rsi_overbought: float = 70.0
    rsi_weight: float = 2.0
    macd_weight: float = 1.5
    bollinger_weight: float = 1.0
    trend_weight: float = 1.0
    trend_min_strength: float = 1.0
    pattern_weight: float = 1.0
    level_weight: float = 0.5
    level_proximity: float = 0.001
    volume_bonus: float = 0.2


class DecisionEngine:
    """
    Motor de decisión por voto ponderado.

    USO:
        engine = DecisionEngine(DecisionConfig(), RiskCalculator())
        decision = engine.decide(indicators, patterns, levels, trend, volume, price)
    """

    def __init__(
        self,
        config: DecisionConfig = None,
        risk_calculator: RiskCalculator = None,
    ):
        self._config = config or DecisionConfig()
        self._risk = risk_calculator or RiskCalculator()

    @property
    def config(self) -> DecisionConfig:
        return self._config

    def decide(
        self,
        indicators: IndicatorSet,
        patterns: PatternFlags,
        levels: SupportResistance,
        trend: TrendInfo,
        volume: VolumeInfo,
        current_price: float,
    ) -> Decision:
        cfg = self._config
        bullish = 0.0
        bearish = 0.0
        reasons: List[str] = []

        # ── RSI ──
        rsi = last(indicators.rsi)
        if rsi is not None:
            if rsi < cfg.rsi_oversold:
                bullish += cfg.rsi_weight
                reasons.append(f"RSI oversold ({rsi:.2f})")
            elif rsi > cfg.rsi_overbought:
                bearish += cfg.rsi_weight
                reasons.append(f"RSI overbought ({rsi:.2f})")

        # ── MACD ──
        macd = last(indicators.macd.macd)
        signal = last(indicators.macd.signal)
        histogram = last(indicators.macd.histogram)
        if macd is not None and signal is not None and histogram is not None:
            if macd > signal and histogram > 0:
                bullish += cfg.macd_weight
                reasons.append("MACD bullish crossover")
            elif macd < signal and histogram < 0:
                bearish += cfg.macd_weight
                reasons.append("MACD bearish crossover")

        # ── Bollinger ──
        upper = last(indicators.bollinger.upper)
        lower = last(indicators.bollinger.lower)
        if lower is not None and current_price <= lower:
            bullish += cfg.bollinger_weight
            reasons.append("Price at lower Bollinger band")
        elif upper is not None and current_price >= upper:
            bearish += cfg.bollinger_weight
            reasons.append("Price at upper Bollinger band")

        # ── Tendencia ──
        if trend.strength > cfg.trend_min_strength:
            if trend.direction == "uptrend":
                bullish += cfg.trend_weight
                reasons.append(f"Strong uptrend ({trend.strength:.2f}%)")
            elif trend.direction == "downtrend":
                bearish += cfg.trend_weight
                reasons.append(f"Strong downtrend ({trend.strength:.2f}%)")

        # ── Patrones ──
        if patterns.bullish:
            bullish += cfg.pattern_weight
            reasons.append("Bullish candlestick pattern")
        if patterns.bearish:
            bearish += cfg.pattern_weight
            reasons.append("Bearish candlestick pattern")

        # ── Soporte / Resistencia ──
        if self._near_any(current_price, levels.support):
            bullish += cfg.level_weight
            reasons.append("Price near support")
        if self._near_any(current_price, levels.resistance):
            bearish += cfg.level_weight
            reasons.append("Price near resistance")

        # ── Volumen (bonus plano) ──
        signal_strength = 0.0
        if volume.is_high_volume:
            signal_strength = cfg.volume_bonus
            reasons.append("High volume confirmation")

        # ── Decisión ──
        action = Action.HOLD
        confidence = 0.0
        total = bullish + bearish
        if total > 0 and bullish != bearish:
            # Empate → hold con confianza 0: no hay lado ganador
            action = Action.BUY if bullish > bearish else Action.SELL
            confidence = max(bullish, bearish) / total * CONFIDENCE_SCALE + signal_strength
            confidence = round(max(0.0, min(confidence, cfg.max_confidence)), 3)

        if action != Action.HOLD and confidence < cfg.confidence_threshold:
            reasons.append(
                f"Confidence {confidence:.3f} below threshold {cfg.confidence_threshold:.2f}"
            )
            action = Action.HOLD

        atr = last(indicators.atr)
        stop_loss, take_profit = self._risk.atr_levels(action, current_price, atr)

        return Decision(
            action=action,
            confidence=confidence,
            bullish_signals=bullish,
            bearish_signals=bearish,
            reasons=tuple(reasons),
            risk_level=self._risk.risk_level(confidence, atr, rsi),
            suggested_stop_loss=stop_loss,
            suggested_take_profit=take_profit,
            indicators_summary=self._summary(indicators, trend, current_price),
        )

    # ────────────────────────────────────────────────────────────────

    def _near_any(self, price: float, levels: List[float]) -> bool:
        if price <= 0:
            return False
        return any(
            abs(price - level) / price < self._config.level_proximity
            for level in levels
        )

    @staticmethod
    def _summary(indicators: IndicatorSet, trend: TrendInfo, price: float) -> dict:
        macd = last(indicators.macd.macd)
        signal = last(indicators.macd.signal)
        macd_signal: Optional[str] = None
        if macd is not None and signal is not None:
            macd_signal = "bullish" if macd > signal else "bearish"

        upper = last(indicators.bollinger.upper)
        lower = last(indicators.bollinger.lower)
        bb_position: Optional[str] = None
        if upper is not None and lower is not None:
            if price >= upper:
                bb_position = "above_upper"
            elif price <= lower:
                bb_position = "below_lower"
            else:
                bb_position = "inside"

        return {
            "rsi": last(indicators.rsi),
            "macd_signal": macd_signal,
            "trend": trend.direction,
            "bb_position": bb_position,
        }
