"""
ForexAI – User Repository (SQLAlchemy)
======================================
Lectura de usuarios elegibles para auto-trading.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select

from forexai.domain.entities.user import TradingUser
from forexai.domain.repositories.user_repository import IUserRepository
from forexai.infrastructure.persistence.database import DatabaseManager
from forexai.infrastructure.persistence.models import UserModel


class UserRepositoryImpl(IUserRepository):

    def __init__(self, db: DatabaseManager):
        self._db = db

    async def list_auto_trading_users(self) -> List[TradingUser]:
        async with self._db.session() as session:
            result = await session.execute(
                select(UserModel)
                .where(
                    UserModel.status == "active",
                    UserModel.trading_active.is_(True),
                    UserModel.ai_active.is_(True),
                )
                .order_by(UserModel.user_id)
            )
            return [m.to_domain() for m in result.scalars().all()]

    async def get(self, user_id: str) -> Optional[TradingUser]:
        async with self._db.session() as session:
            model = await session.get(UserModel, user_id)
            return model.to_domain() if model is not None else None

    async def save(self, user: TradingUser) -> TradingUser:
        async with self._db.session() as session:
            await session.merge(UserModel.from_domain(user))
            await session.commit()
        return user
