"""
ForexAI – User ORM Model
========================
Tabla `users`: solo las columnas que consume el auto-trading. El alta,
la autenticación y la facturación viven fuera de este servicio.
"""

from __future__ import annotations

from sqlalchemy import Boolean, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from forexai.domain.entities.user import TradingUser
from forexai.infrastructure.persistence.database import Base


class UserModel(Base):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    subscription_tier: Mapped[str] = mapped_column(String(16), nullable=False, default="free")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")
    trading_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ai_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_daily_trades: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    entry_amount: Mapped[float] = mapped_column(
        Numeric(12, 2, asdecimal=False), nullable=False, default=25.0,
    )
    demo_mode: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_domain(self) -> TradingUser:
        return TradingUser(
            user_id=self.user_id,
            subscription_tier=self.subscription_tier,
            status=self.status,
            trading_active=self.trading_active,
            ai_active=self.ai_active,
            max_daily_trades=self.max_daily_trades,
            entry_amount=self.entry_amount,
            demo_mode=self.demo_mode,
        )

    @classmethod
    def from_domain(cls, user: TradingUser) -> "UserModel":
        return cls(**user.to_dict())
