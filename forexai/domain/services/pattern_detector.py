"""
ForexAI – Domain Service: Pattern / Level Detector
==================================================
Patrones de velas, niveles de soporte/resistencia y contexto de
tendencia/volumen. Todo stateless.

PATRONES (sobre las últimas 3 velas):
  body  = |close - open|           range = high - low
  upper = high - max(open, close)  lower = min(open, close) - low

  Doji          body / range < 0.1
  Hammer        lower > 2·body  AND upper < 0.5·body
  Shooting Star upper > 2·body  AND lower < 0.5·body
  Engulfing     body > 1.5·body_prev AND direcciones opuestas

NIVELES:
  Un valor i es máximo (mínimo) local si es ≥ (≤) que todos los valores
  de la ventana simétrica [i-w, i+w]. Se devuelven los 3 más recientes.
"""

from __future__ import annotations

from typing import List, Sequence

from forexai.domain.entities.candle import Candle
from forexai.domain.value_objects.market_context import (
    PatternFlags,
    SupportResistance,
    TrendInfo,
    VolumeInfo,
)

DOJI_BODY_RATIO = 0.1
SHADOW_BODY_RATIO = 2.0
OPPOSITE_SHADOW_RATIO = 0.5
ENGULFING_RATIO = 1.5
LEVEL_WINDOW = 5
MAX_LEVELS = 3


class PatternDetector:
    """Detector de patrones y niveles (funciones puras)."""

    # ════════════════════════════════════════════════════════════════
    #  PATRONES DE VELAS
    # ════════════════════════════════════════════════════════════════

    @staticmethod
    def detect_patterns(candles: Sequence[Candle]) -> PatternFlags:
        """Evalúa los patrones sobre la última vela (y la previa para engulfing)."""
        recent = list(candles[-3:])
        if len(recent) < 2:
            return PatternFlags()

        current = recent[-1]
        previous = recent[-2]

        body = current.body
        candle_range = current.range
        upper_shadow = current.high - max(current.open, current.close)
        lower_shadow = min(current.open, current.close) - current.low

        doji = candle_range > 0 and body / candle_range < DOJI_BODY_RATIO
        hammer = (
            lower_shadow > SHADOW_BODY_RATIO * body
            and upper_shadow < OPPOSITE_SHADOW_RATIO * body
        )
        shooting_star = (
            upper_shadow > SHADOW_BODY_RATIO * body
            and lower_shadow < OPPOSITE_SHADOW_RATIO * body
        )

        engulfing = (
            body > ENGULFING_RATIO * previous.body
            and current.is_bullish != previous.is_bullish
        )
        direction = None
        if engulfing:
            direction = "bullish" if current.is_bullish else "bearish"

        return PatternFlags(
            doji=doji,
            hammer=hammer,
            shooting_star=shooting_star,
            engulfing=engulfing,
            engulfing_direction=direction,
        )

    # ════════════════════════════════════════════════════════════════
    #  SOPORTE / RESISTENCIA
    # ════════════════════════════════════════════════════════════════

    @staticmethod
    def find_local_maxima(values: Sequence[float], window: int = LEVEL_WINDOW) -> List[float]:
        levels = [
            values[i]
            for i in range(window, len(values) - window)
            if all(values[i] >= v for v in values[i - window:i + window + 1])
        ]
        return levels[-MAX_LEVELS:]

    @staticmethod
    def find_local_minima(values: Sequence[float], window: int = LEVEL_WINDOW) -> List[float]:
        levels = [
            values[i]
            for i in range(window, len(values) - window)
            if all(values[i] <= v for v in values[i - window:i + window + 1])
        ]
        return levels[-MAX_LEVELS:]

    @classmethod
    def support_resistance(
        cls, candles: Sequence[Candle], window: int = LEVEL_WINDOW,
    ) -> SupportResistance:
        """Soportes = mínimos locales de lows; resistencias = máximos de highs."""
        return SupportResistance(
            support=cls.find_local_minima([c.low for c in candles], window),
            resistance=cls.find_local_maxima([c.high for c in candles], window),
        )

    # ════════════════════════════════════════════════════════════════
    #  TENDENCIA / VOLUMEN
    # ════════════════════════════════════════════════════════════════

    @staticmethod
    def analyze_trend(price: float, sma20: float | None, sma50: float | None) -> TrendInfo:
        """
        Uptrend si price > SMA20 > SMA50, downtrend si price < SMA20 < SMA50.

        La fuerza es la desviación % del precio respecto a SMA50, con el
        signo de la dirección (siempre positiva en la dirección detectada).
        """
        if sma20 is None or sma50 is None or sma50 == 0:
            return TrendInfo()

        sma20_position = "above" if price > sma20 else "below"
        sma50_position = "above" if price > sma50 else "below"

        if price > sma20 > sma50:
            return TrendInfo(
                direction="uptrend",
                strength=(price - sma50) / sma50 * 100,
                sma20_position=sma20_position,
                sma50_position=sma50_position,
            )
        if price < sma20 < sma50:
            return TrendInfo(
                direction="downtrend",
                strength=(sma50 - price) / sma50 * 100,
                sma20_position=sma20_position,
                sma50_position=sma50_position,
            )
        return TrendInfo(
            direction="sideways",
            strength=0.0,
            sma20_position=sma20_position,
            sma50_position=sma50_position,
        )

    @staticmethod
    def analyze_volume(volumes: Sequence[float], high_ratio: float = 1.5) -> VolumeInfo:
        """Volumen actual vs promedio de la ventana."""
        if not volumes:
            return VolumeInfo()

        average = sum(volumes) / len(volumes)
        current = volumes[-1]
        ratio = current / average if average > 0 else 0.0
        return VolumeInfo(
            average=average,
            current=current,
            ratio=ratio,
            is_high_volume=current > high_ratio * average,
        )
