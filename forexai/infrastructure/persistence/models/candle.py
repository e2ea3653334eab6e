"""
ForexAI – Candle ORM Model
==========================
Tabla `candles`: una fila por (symbol, timeframe, timestamp).

- UNIQUE (symbol, timeframe, timestamp): la clave natural de la vela.
  Un upsert nunca duplica filas.
- timestamp: epoch (seg) de apertura del bucket, BIGINT.
- Precios NUMERIC(20,8) leídos como float.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from forexai.domain.entities.candle import Candle
from forexai.infrastructure.persistence.database import BIGINT_PK, Base, utcnow

PRICE = Numeric(20, 8, asdecimal=False)


class CandleModel(Base):
    __tablename__ = "candles"

    id: Mapped[int] = mapped_column(BIGINT_PK, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(String(12), nullable=False)
    timeframe: Mapped[str] = mapped_column(String(4), nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)

    open: Mapped[float] = mapped_column(PRICE, nullable=False)
    high: Mapped[float] = mapped_column(PRICE, nullable=False)
    low: Mapped[float] = mapped_column(PRICE, nullable=False)
    close: Mapped[float] = mapped_column(PRICE, nullable=False)
    volume: Mapped[float] = mapped_column(PRICE, nullable=False, default=0.0)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow,
        onupdate=utcnow, nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("symbol", "timeframe", "timestamp", name="uq_candles_key"),
    )

    def to_domain(self) -> Candle:
        return Candle(
            symbol=self.symbol,
            timeframe=self.timeframe,
            timestamp=float(self.timestamp),
            open=self.open,
            high=self.high,
            low=self.low,
            close=self.close,
            volume=self.volume or 0.0,
        )

    @classmethod
    def from_domain(cls, candle: Candle) -> "CandleModel":
        return cls(
            symbol=candle.symbol,
            timeframe=candle.timeframe,
            timestamp=int(candle.timestamp),
            open=candle.open,
            high=candle.high,
            low=candle.low,
            close=candle.close,
            volume=candle.volume,
        )

    def update_from_domain(self, candle: Candle, update_volume: bool = False) -> None:
        """Sobrescribe OHLC; el volumen solo si se pide."""
        self.open = candle.open
        self.high = candle.high
        self.low = candle.low
        self.close = candle.close
        if update_volume:
            self.volume = candle.volume
