"""
ForexAI – Domain Service: Indicator Calculator
==============================================
Cálculos de indicadores técnicos puros sobre series completas.

Cada función devuelve una LISTA ordenada (más antiguo primero) cuyo último
elemento corresponde a la última vela. La salida es más corta que la
entrada en lo que consume el lookback; nunca hay forward-fill.

Con menos datos que el período requerido se devuelve lista vacía. Los
callers deben chequear la longitud, no esperar excepciones.

VENTAJA:
- Testeo unitario sin mocks
- Sin dependencias de librerías externas en el dominio
- Fórmulas explícitas y auditables
"""

from __future__ import annotations

from typing import List, Sequence

from forexai.domain.entities.candle import Candle
from forexai.domain.value_objects.indicator_set import (
    BollingerBands,
    IndicatorSet,
    MACDSeries,
    StochasticSeries,
)


class IndicatorCalculator:
    """
    Calculadora de indicadores técnicos puros.

    RESPONSABILIDAD:
    Implementar las fórmulas matemáticas de indicadores.
    NO mantiene estado (stateless).
    """

    @staticmethod
    def sma(series: Sequence[float], period: int) -> List[float]:
        """
        SMA de cada ventana de `period` valores.

        Longitud de salida: len(series) - period + 1.
        """
        if period <= 0 or len(series) < period:
            return []

        result = []
        for i in range(period - 1, len(series)):
            window = series[i - period + 1:i + 1]
            result.append(sum(window) / period)
        return result

    @staticmethod
    def ema(series: Sequence[float], period: int) -> List[float]:
        """
        EMA (Exponential Moving Average).

        FÓRMULA:
        EMA_t = EMA_{t-1} × (1-k) + price_t × k
        k = 2 / (period + 1)

        INICIALIZACIÓN:
        EMA inicial = SMA de los primeros `period` valores.
        """
        if period <= 0 or len(series) < period:
            return []

        k = 2.0 / (period + 1)
        ema = sum(series[:period]) / period
        result = [ema]
        for price in series[period:]:
            ema = ema * (1 - k) + price * k
            result.append(ema)
        return result

    @staticmethod
    def macd(
        series: Sequence[float],
        fast: int = 12,
        slow: int = 26,
        signal: int = 9,
    ) -> MACDSeries:
        """
        MACD = EMA(fast) - EMA(slow); signal = EMA(MACD, signal).

        ALINEACIÓN:
        Siempre se recorta el FRENTE (lo más antiguo) de la serie más larga
        para que el valor más reciente quede alineado.
        """
        ema_fast = IndicatorCalculator.ema(series, fast)
        ema_slow = IndicatorCalculator.ema(series, slow)
        if not ema_fast or not ema_slow:
            return MACDSeries()

        offset = len(ema_fast) - len(ema_slow)
        macd_line = [f - s for f, s in zip(ema_fast[offset:], ema_slow)]

        signal_line = IndicatorCalculator.ema(macd_line, signal)
        if not signal_line:
            return MACDSeries()

        macd_line = macd_line[len(macd_line) - len(signal_line):]
        histogram = [m - s for m, s in zip(macd_line, signal_line)]
        return MACDSeries(macd=macd_line, signal=signal_line, histogram=histogram)

    @staticmethod
    def rsi(series: Sequence[float], period: int = 14) -> List[float]:
        """
        RSI con suavizado de Wilder.

        FÓRMULA:
        avg = (avg × (period-1) + nuevo) / period
        RSI = 100 - 100 / (1 + avg_gain / avg_loss)

        Sin pérdidas (avg_loss == 0) el RSI vale 100.

        Returns:
            Lista de len(series) - period valores en [0, 100].
        """
        if period <= 0 or len(series) < period + 1:
            return []

        changes = [series[i] - series[i - 1] for i in range(1, len(series))]
        gains = [max(0.0, c) for c in changes]
        losses = [max(0.0, -c) for c in changes]

        avg_gain = sum(gains[:period]) / period
        avg_loss = sum(losses[:period]) / period

        result = [IndicatorCalculator._rsi_value(avg_gain, avg_loss)]
        for i in range(period, len(changes)):
            avg_gain = (avg_gain * (period - 1) + gains[i]) / period
            avg_loss = (avg_loss * (period - 1) + losses[i]) / period
            result.append(IndicatorCalculator._rsi_value(avg_gain, avg_loss))
        return result

    @staticmethod
    def _rsi_value(avg_gain: float, avg_loss: float) -> float:
        # Protección división por cero
        if avg_loss == 0:
            return 100.0
        rs = avg_gain / avg_loss
        return 100.0 - (100.0 / (1.0 + rs))

    @staticmethod
    def bollinger(
        series: Sequence[float],
        period: int = 20,
        k: float = 2.0,
    ) -> BollingerBands:
        """Bandas de Bollinger con desviación estándar poblacional."""
        middle = IndicatorCalculator.sma(series, period)
        if not middle:
            return BollingerBands()

        upper, lower = [], []
        for idx, mean in enumerate(middle):
            window = series[idx:idx + period]
            variance = sum((x - mean) ** 2 for x in window) / period
            width = k * variance ** 0.5
            upper.append(mean + width)
            lower.append(mean - width)
        return BollingerBands(upper=upper, middle=middle, lower=lower)

    @staticmethod
    def stochastic(
        highs: Sequence[float],
        lows: Sequence[float],
        closes: Sequence[float],
        k_period: int = 14,
        d_period: int = 3,
    ) -> StochasticSeries:
        """
        %K = (close - LL) / (HH - LL) × 100 sobre la ventana k_period.
        %D = SMA(%K, d_period).

        Rango plano (HH == LL) → %K = 50.
        """
        n = min(len(highs), len(lows), len(closes))
        if n < k_period:
            return StochasticSeries()

        k_values = []
        for i in range(k_period - 1, n):
            highest = max(highs[i - k_period + 1:i + 1])
            lowest = min(lows[i - k_period + 1:i + 1])
            span = highest - lowest
            k_values.append(50.0 if span == 0 else (closes[i] - lowest) / span * 100)
        return StochasticSeries(k=k_values, d=IndicatorCalculator.sma(k_values, d_period))

    @staticmethod
    def atr(
        highs: Sequence[float],
        lows: Sequence[float],
        closes: Sequence[float],
        period: int = 14,
    ) -> List[float]:
        """
        ATR = SMA de los True Ranges.

        TR = max(high - low, |high - prev_close|, |low - prev_close|)
        El primer TR se calcula en la barra 1 (necesita prev_close).
        """
        n = min(len(highs), len(lows), len(closes))
        if n < period + 1:
            return []

        true_ranges = []
        for i in range(1, n):
            prev_close = closes[i - 1]
            true_ranges.append(max(
                highs[i] - lows[i],
                abs(highs[i] - prev_close),
                abs(lows[i] - prev_close),
            ))
        return IndicatorCalculator.sma(true_ranges, period)

    @staticmethod
    def williams_r(
        highs: Sequence[float],
        lows: Sequence[float],
        closes: Sequence[float],
        period: int = 14,
    ) -> List[float]:
        """%R = (HH - close) / (HH - LL) × -100. Rango plano → -50."""
        n = min(len(highs), len(lows), len(closes))
        if n < period:
            return []

        result = []
        for i in range(period - 1, n):
            highest = max(highs[i - period + 1:i + 1])
            lowest = min(lows[i - period + 1:i + 1])
            span = highest - lowest
            result.append(-50.0 if span == 0 else (highest - closes[i]) / span * -100)
        return result

    @classmethod
    def compute_all(cls, candles: Sequence[Candle]) -> IndicatorSet:
        """Calcula el IndicatorSet completo sobre velas en orden ascendente."""
        closes = [c.close for c in candles]
        highs = [c.high for c in candles]
        lows = [c.low for c in candles]

        return IndicatorSet(
            sma20=cls.sma(closes, 20),
            sma50=cls.sma(closes, 50),
            ema12=cls.ema(closes, 12),
            ema26=cls.ema(closes, 26),
            macd=cls.macd(closes),
            rsi=cls.rsi(closes, 14),
            bollinger=cls.bollinger(closes, 20, 2),
            stochastic=cls.stochastic(highs, lows, closes, 14, 3),
            atr=cls.atr(highs, lows, closes, 14),
            williams_r=cls.williams_r(highs, lows, closes, 14),
        )
