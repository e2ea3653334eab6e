"""
ForexAI – Market Data Repository (SQLAlchemy)
=============================================
Market Data Store sobre la tabla `candles`.

UPSERT:
  select por clave natural → update de OHLC o insert, dentro de un lock
  por (symbol, timeframe). El UNIQUE (symbol, timeframe, timestamp)
  garantiza además que nunca haya filas duplicadas.
"""

from __future__ import annotations

from typing import List

from sqlalchemy import desc, func, select

from forexai.domain.entities.candle import Candle
from forexai.domain.repositories.market_data_repository import IMarketDataRepository
from forexai.infrastructure.persistence.database import DatabaseManager
from forexai.infrastructure.persistence.locks import KeyedLock
from forexai.infrastructure.persistence.models import CandleModel
from forexai.shared.logging.logger import get_logger

logger = get_logger("market_data_repository")


class MarketDataRepositoryImpl(IMarketDataRepository):
    """Implementación async del Market Data Store."""

    def __init__(self, db: DatabaseManager):
        self._db = db
        self._locks = KeyedLock()

    async def upsert_candle(self, candle: Candle, update_volume: bool = False) -> Candle:
        async with self._locks((candle.symbol, candle.timeframe)):
            async with self._db.session() as session:
                result = await session.execute(
                    select(CandleModel).where(
                        CandleModel.symbol == candle.symbol,
                        CandleModel.timeframe == candle.timeframe,
                        CandleModel.timestamp == int(candle.timestamp),
                    )
                )
                model = result.scalar_one_or_none()
                if model is None:
                    model = CandleModel.from_domain(candle)
                    session.add(model)
                else:
                    model.update_from_domain(candle, update_volume=update_volume)
                await session.commit()
                return model.to_domain()

    async def get_recent_candles(
        self, symbol: str, timeframe: str, limit: int = 200,
    ) -> List[Candle]:
        async with self._db.session() as session:
            result = await session.execute(
                select(CandleModel)
                .where(CandleModel.symbol == symbol, CandleModel.timeframe == timeframe)
                .order_by(desc(CandleModel.timestamp))
                .limit(limit)
            )
            models = result.scalars().all()
        # La consulta trae las más recientes primero; el contrato es ASC
        return [m.to_domain() for m in reversed(models)]

    async def count(self, symbol: str, timeframe: str) -> int:
        async with self._db.session() as session:
            result = await session.execute(
                select(func.count())
                .select_from(CandleModel)
                .where(CandleModel.symbol == symbol, CandleModel.timeframe == timeframe)
            )
            return int(result.scalar_one())
