"""
ForexAI – Trade Repository (SQLAlchemy)
=======================================
Persistencia de trades sobre la tabla `trades`.

- add(): INSERT; un trade_id duplicado falla con IntegrityError y se
  propaga.
- update_closed(): la fila se relee (FOR UPDATE en MySQL) y solo se
  cierra si sigue ACTIVE. Los cuatro campos de cierre van en el mismo
  commit.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import desc, func, select

from forexai.domain.entities.trade import Trade, TradeStatus
from forexai.domain.exceptions.domain_errors import InvalidTradeError
from forexai.domain.repositories.trade_repository import ITradeRepository
from forexai.infrastructure.persistence.database import DatabaseManager
from forexai.infrastructure.persistence.locks import KeyedLock
from forexai.infrastructure.persistence.models import TradeModel
from forexai.shared.logging.logger import get_logger

logger = get_logger("trade_repository")


class TradeRepositoryImpl(ITradeRepository):
    """Implementación async del repositorio de trades."""

    def __init__(self, db: DatabaseManager):
        self._db = db
        self._locks = KeyedLock()

    async def add(self, trade: Trade) -> Trade:
        async with self._db.session() as session:
            session.add(TradeModel.from_domain(trade))
            await session.commit()
        logger.debug("Trade guardado: id=%s symbol=%s", trade.trade_id, trade.symbol)
        return trade

    async def get(self, trade_id: str) -> Optional[Trade]:
        async with self._db.session() as session:
            result = await session.execute(
                select(TradeModel).where(TradeModel.trade_id == trade_id)
            )
            model = result.scalar_one_or_none()
            return model.to_domain() if model is not None else None

    async def update_closed(self, trade: Trade) -> Trade:
        async with self._locks(trade.trade_id):
            async with self._db.session() as session:
                result = await session.execute(
                    select(TradeModel)
                    .where(TradeModel.trade_id == trade.trade_id)
                    .with_for_update()
                )
                model = result.scalar_one_or_none()
                if model is None:
                    raise InvalidTradeError("Trade no encontrado", trade.trade_id)
                if model.status != TradeStatus.ACTIVE.value:
                    raise InvalidTradeError(
                        f"Trade no activo (status={model.status})", trade.trade_id
                    )
                model.apply_close(trade)
                await session.commit()
                return model.to_domain()

    async def count_opened_since(self, user_id: str, since: float) -> int:
        async with self._db.session() as session:
            result = await session.execute(
                select(func.count())
                .select_from(TradeModel)
                .where(
                    TradeModel.user_id == user_id,
                    TradeModel.opened_at >= int(since * 1000),
                )
            )
            return int(result.scalar_one())

    async def list_by_user(self, user_id: str, limit: int = 50) -> List[Trade]:
        async with self._db.session() as session:
            result = await session.execute(
                select(TradeModel)
                .where(TradeModel.user_id == user_id)
                .order_by(desc(TradeModel.opened_at), desc(TradeModel.id))
                .limit(limit)
            )
            return [m.to_domain() for m in result.scalars().all()]

    async def list_active(self, user_id: Optional[str] = None) -> List[Trade]:
        query = select(TradeModel).where(TradeModel.status == TradeStatus.ACTIVE.value)
        if user_id is not None:
            query = query.where(TradeModel.user_id == user_id)
        query = query.order_by(TradeModel.opened_at)

        async with self._db.session() as session:
            result = await session.execute(query)
            return [m.to_domain() for m in result.scalars().all()]
