"""
ForexAI – Domain Value Objects: contexto de mercado
===================================================
Resultados del detector de patrones/niveles y de los analizadores de
tendencia y volumen. Son la entrada del DecisionEngine junto con el
IndicatorSet.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True, slots=True)
class PatternFlags:
    """Patrones de velas sobre las últimas 3 velas."""

    doji: bool = False
    hammer: bool = False
    shooting_star: bool = False
    engulfing: bool = False
    engulfing_direction: Optional[str] = None  # "bullish" | "bearish"
    # No se detectan; se mantienen por forma del payload
    morning_star: bool = False
    evening_star: bool = False

    @property
    def bullish(self) -> bool:
        return (
            self.hammer
            or self.morning_star
            or (self.engulfing and self.engulfing_direction == "bullish")
        )

    @property
    def bearish(self) -> bool:
        return (
            self.shooting_star
            or self.evening_star
            or (self.engulfing and self.engulfing_direction == "bearish")
        )

    def to_dict(self) -> dict:
        return {
            "doji": self.doji,
            "hammer": self.hammer,
            "shooting_star": self.shooting_star,
            "engulfing": self.engulfing,
            "engulfing_direction": self.engulfing_direction,
            "morning_star": self.morning_star,
            "evening_star": self.evening_star,
        }


@dataclass(frozen=True, slots=True)
class SupportResistance:
    support: List[float] = field(default_factory=list)
    resistance: List[float] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"support": list(self.support), "resistance": list(self.resistance)}


@dataclass(frozen=True, slots=True)
class TrendInfo:
    direction: str = "sideways"  # uptrend | downtrend | sideways
    strength: float = 0.0        # % de desviación respecto a SMA50
    sma20_position: str = "below"
    sma50_position: str = "below"

    def to_dict(self) -> dict:
        return {
            "direction": self.direction,
            "strength": self.strength,
            "sma20_position": self.sma20_position,
            "sma50_position": self.sma50_position,
        }


@dataclass(frozen=True, slots=True)
class VolumeInfo:
    average: float = 0.0
    current: float = 0.0
    ratio: float = 0.0
    is_high_volume: bool = False

    def to_dict(self) -> dict:
        return {
            "average": self.average,
            "current": self.current,
            "ratio": self.ratio,
            "is_high_volume": self.is_high_volume,
        }
