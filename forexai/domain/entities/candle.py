"""
ForexAI – Domain Entity: Candle
===============================
Vela OHLCV identificada por (symbol, timeframe, timestamp).

- frozen=True → una vela leída del store nunca se altera en memoria;
  un upsert produce una instancia nueva.
- timestamp es el epoch (seg) de APERTURA del bucket.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Tuple

from forexai.domain.exceptions.domain_errors import ValidationError

VALID_TIMEFRAMES = ("1m", "5m", "15m", "1h", "4h", "1d")


@dataclass(frozen=True, slots=True)
class Candle:
    """Vela OHLCV con timestamp de apertura."""

    symbol: str          # e.g. "EURUSD"
    timeframe: str       # 1m | 5m | 15m | 1h | 4h | 1d
    timestamp: float     # epoch de apertura
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    def __post_init__(self) -> None:
        if self.timeframe not in VALID_TIMEFRAMES:
            raise ValidationError(
                f"Timeframe inválido: {self.timeframe}",
                field="timeframe", value=self.timeframe,
            )

    @property
    def key(self) -> Tuple[str, str, float]:
        """Clave natural única."""
        return (self.symbol, self.timeframe, self.timestamp)

    @property
    def body(self) -> float:
        return abs(self.close - self.open)

    @property
    def range(self) -> float:
        return self.high - self.low

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    def with_ohlc_of(self, other: "Candle", update_volume: bool = False) -> "Candle":
        """Nueva vela con el OHLC de `other`; el volumen solo si se pide."""
        return replace(
            self,
            open=other.open,
            high=other.high,
            low=other.low,
            close=other.close,
            volume=other.volume if update_volume else self.volume,
        )

    def to_dict(self) -> dict:
        """Serialización para WebSocket / frontend."""
        return {
            "symbol": self.symbol,
            "timeframe": self.timeframe,
            "timestamp": self.timestamp,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }
