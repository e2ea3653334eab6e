"""
ForexAI – Trade ORM Model
=========================
Tabla `trades`: trades demo y live.

DECISIONES DE DISEÑO:
- trade_id (String) es la clave natural: AUTO_* en demo, contract_id
  del broker en live.
- BIGINT para timestamps (epoch ms).
- exit_price / profit_loss / closed_at NULL hasta el cierre; se
  escriben juntos en la misma transacción.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, BigInteger, Boolean, DateTime, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from forexai.domain.entities.trade import Trade, TradeStatus, TradeType
from forexai.infrastructure.persistence.database import BIGINT_PK, Base, utcnow

PRICE = Numeric(20, 8, asdecimal=False)


def _to_ms(epoch: Optional[float]) -> Optional[int]:
    return int(epoch * 1000) if epoch is not None else None


def _from_ms(millis: Optional[int]) -> Optional[float]:
    return millis / 1000 if millis is not None else None


class TradeModel(Base):
    __tablename__ = "trades"

    # ─── Primary Key ──────────────────────────────────────────────────
    id: Mapped[int] = mapped_column(BIGINT_PK, primary_key=True, autoincrement=True)
    trade_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    # ─── Operación ────────────────────────────────────────────────────
    symbol: Mapped[str] = mapped_column(String(12), nullable=False)
    trade_type: Mapped[str] = mapped_column(String(4), nullable=False)
    entry_price: Mapped[float] = mapped_column(PRICE, nullable=False)
    amount: Mapped[float] = mapped_column(PRICE, nullable=False)
    stop_loss: Mapped[Optional[float]] = mapped_column(PRICE, default=None)
    take_profit: Mapped[Optional[float]] = mapped_column(PRICE, default=None)
    confidence: Mapped[float] = mapped_column(Numeric(6, 3, asdecimal=False), default=0.0)
    is_demo: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    broker_contract_id: Mapped[Optional[str]] = mapped_column(String(64), default=None)
    decision_snapshot: Mapped[Optional[dict]] = mapped_column(JSON, default=None)

    # ─── Status & Result ──────────────────────────────────────────────
    status: Mapped[str] = mapped_column(String(12), nullable=False, default="active")
    exit_price: Mapped[Optional[float]] = mapped_column(PRICE, default=None)
    profit_loss: Mapped[Optional[float]] = mapped_column(PRICE, default=None)

    # ─── Timing ───────────────────────────────────────────────────────
    opened_at: Mapped[int] = mapped_column(BigInteger, nullable=False, comment="Epoch ms")
    closed_at: Mapped[Optional[int]] = mapped_column(BigInteger, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False,
    )

    __table_args__ = (
        Index("idx_trades_user_opened", "user_id", "opened_at"),
        Index("idx_trades_status", "status"),
    )

    def to_domain(self) -> Trade:
        return Trade(
            trade_id=self.trade_id,
            user_id=self.user_id,
            symbol=self.symbol,
            trade_type=TradeType(self.trade_type),
            entry_price=self.entry_price,
            amount=self.amount,
            status=TradeStatus(self.status),
            is_demo=self.is_demo,
            confidence=self.confidence or 0.0,
            stop_loss=self.stop_loss,
            take_profit=self.take_profit,
            exit_price=self.exit_price,
            profit_loss=self.profit_loss,
            opened_at=_from_ms(self.opened_at),
            closed_at=_from_ms(self.closed_at),
            broker_contract_id=self.broker_contract_id,
            decision_snapshot=self.decision_snapshot or {},
        )

    @classmethod
    def from_domain(cls, trade: Trade) -> "TradeModel":
        return cls(
            trade_id=trade.trade_id,
            user_id=trade.user_id,
            symbol=trade.symbol,
            trade_type=trade.trade_type.value,
            entry_price=trade.entry_price,
            amount=trade.amount,
            stop_loss=trade.stop_loss,
            take_profit=trade.take_profit,
            confidence=trade.confidence,
            is_demo=trade.is_demo,
            broker_contract_id=trade.broker_contract_id,
            decision_snapshot=trade.decision_snapshot or None,
            status=trade.status.value,
            exit_price=trade.exit_price,
            profit_loss=trade.profit_loss,
            opened_at=_to_ms(trade.opened_at),
            closed_at=_to_ms(trade.closed_at),
        )

    def apply_close(self, trade: Trade) -> None:
        """Escribe JUNTOS los campos de cierre."""
        self.status = trade.status.value
        self.exit_price = trade.exit_price
        self.profit_loss = trade.profit_loss
        self.closed_at = _to_ms(trade.closed_at)
