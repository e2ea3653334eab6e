"""
ForexAI – Domain Entity: Trade
==============================
Trade demo o live creado por el Execution Adapter.

CICLO DE VIDA:

  Decision (confianza ≥ umbral) + usuario elegible
       │
       ▼
  Trade ACTIVE ──close(exit_price)──▸ Trade CLOSED

El cierre es una única transición atómica: status, exit_price,
profit_loss y closed_at se fijan JUNTOS en una instancia nueva.
Cualquier combinación parcial se rechaza al construir la entidad.

CÁLCULO DE P&L (en unidades de la moneda de la cuenta):

  BUY:  (exit - entry) × (amount / entry)
  SELL: (entry - exit) × (amount / entry)
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional

from forexai.domain.exceptions.domain_errors import InvalidTradeError


class TradeStatus(str, Enum):
    """Estados posibles de un trade."""
    PENDING = "pending"
    ACTIVE = "active"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class TradeType(str, Enum):
    BUY = "buy"
    SELL = "sell"


def compute_profit_loss(
    trade_type: TradeType, entry_price: float, exit_price: float, amount: float,
) -> float:
    """P&L de una posición de `amount` abierta a `entry_price`."""
    units = amount / entry_price
    if trade_type == TradeType.BUY:
        return (exit_price - entry_price) * units
    return (entry_price - exit_price) * units


@dataclass(frozen=True, slots=True)
class Trade:
    """Trade persistido. Inmutable: el cierre devuelve una instancia nueva."""

    trade_id: str
    user_id: str
    symbol: str
    trade_type: TradeType
    entry_price: float
    amount: float
    status: TradeStatus = TradeStatus.ACTIVE
    is_demo: bool = True
    confidence: float = 0.0
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    exit_price: Optional[float] = None
    profit_loss: Optional[float] = None
    opened_at: float = field(default_factory=time.time)
    closed_at: Optional[float] = None
    broker_contract_id: Optional[str] = None
    decision_snapshot: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.entry_price <= 0:
            raise InvalidTradeError("entry_price debe ser positivo", self.trade_id)
        if self.amount <= 0:
            raise InvalidTradeError("amount debe ser positivo", self.trade_id)

        is_closed = self.status == TradeStatus.CLOSED
        has_close_fields = (
            self.closed_at is not None
            and self.exit_price is not None
            and self.profit_loss is not None
        )
        has_any_close_field = (
            self.closed_at is not None
            or self.exit_price is not None
            or self.profit_loss is not None
        )
        if is_closed and not has_close_fields:
            raise InvalidTradeError(
                "Trade cerrado sin exit_price/profit_loss/closed_at", self.trade_id
            )
        if not is_closed and has_any_close_field:
            raise InvalidTradeError(
                f"Trade en estado {self.status.value} con campos de cierre", self.trade_id
            )

    @property
    def is_open(self) -> bool:
        return self.status == TradeStatus.ACTIVE

    def close(self, exit_price: float, closed_at: Optional[float] = None) -> "Trade":
        """
        Transición ACTIVE → CLOSED.

        Raises:
            InvalidTradeError: si el trade no está activo o el precio es inválido.
        """
        if not self.is_open:
            raise InvalidTradeError(
                f"Trade no activo (status={self.status.value})", self.trade_id
            )
        if exit_price <= 0:
            raise InvalidTradeError("exit_price debe ser positivo", self.trade_id)

        pnl = compute_profit_loss(self.trade_type, self.entry_price, exit_price, self.amount)
        return replace(
            self,
            status=TradeStatus.CLOSED,
            exit_price=exit_price,
            profit_loss=pnl,
            closed_at=closed_at if closed_at is not None else time.time(),
        )

    def to_dict(self) -> dict:
        """Serialización para API / notificaciones."""
        return {
            "trade_id": self.trade_id,
            "user_id": self.user_id,
            "symbol": self.symbol,
            "type": self.trade_type.value,
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "amount": self.amount,
            "profit_loss": self.profit_loss,
            "status": self.status.value,
            "stop_loss": self.stop_loss,
            "take_profit": self.take_profit,
            "is_demo": self.is_demo,
            "confidence": self.confidence,
            "opened_at": self.opened_at,
            "closed_at": self.closed_at,
            "broker_contract_id": self.broker_contract_id,
        }
