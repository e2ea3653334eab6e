"""
ForexAI – Domain Value Object: IndicatorSet
===========================================
Snapshot de indicadores de una corrida de análisis. No se persiste por
separado: viaja dentro del análisis y se resume en la Decision.

Cada serie está ordenada de la más antigua a la más reciente; el último
elemento siempre corresponde a la última vela.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


def last(series: List[float]) -> Optional[float]:
    """Último valor de una serie, o None si está vacía."""
    return series[-1] if series else None


@dataclass(frozen=True, slots=True)
class MACDSeries:
    macd: List[float] = field(default_factory=list)
    signal: List[float] = field(default_factory=list)
    histogram: List[float] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class BollingerBands:
    upper: List[float] = field(default_factory=list)
    middle: List[float] = field(default_factory=list)
    lower: List[float] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class StochasticSeries:
    k: List[float] = field(default_factory=list)
    d: List[float] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class IndicatorSet:
    """Indicadores calculados sobre la ventana de velas."""

    sma20: List[float] = field(default_factory=list)
    sma50: List[float] = field(default_factory=list)
    ema12: List[float] = field(default_factory=list)
    ema26: List[float] = field(default_factory=list)
    macd: MACDSeries = field(default_factory=MACDSeries)
    rsi: List[float] = field(default_factory=list)
    bollinger: BollingerBands = field(default_factory=BollingerBands)
    stochastic: StochasticSeries = field(default_factory=StochasticSeries)
    atr: List[float] = field(default_factory=list)
    williams_r: List[float] = field(default_factory=list)

    def latest(self) -> dict:
        """Últimos valores de cada indicador (None si la serie está vacía)."""
        return {
            "sma20": last(self.sma20),
            "sma50": last(self.sma50),
            "ema12": last(self.ema12),
            "ema26": last(self.ema26),
            "macd": {
                "macd": last(self.macd.macd),
                "signal": last(self.macd.signal),
                "histogram": last(self.macd.histogram),
            },
            "rsi": last(self.rsi),
            "bollinger": {
                "upper": last(self.bollinger.upper),
                "middle": last(self.bollinger.middle),
                "lower": last(self.bollinger.lower),
            },
            "stochastic": {
                "k": last(self.stochastic.k),
                "d": last(self.stochastic.d),
            },
            "atr": last(self.atr),
            "williams_r": last(self.williams_r),
        }
