"""
ForexAI – Domain Events
=======================
Hechos que el núcleo publica hacia el sink de notificaciones.
Inmutables y con timestamp.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Any


@dataclass(frozen=True)
class DomainEvent:
    """Evento base de dominio."""

    event_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.__class__.__name__,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ConnectivityChanged(DomainEvent):
    """Evento: cambió el estado de conexión con el feed."""

    state: str = ""   # connected | disconnected | reconnecting | failed | error
    reason: str = ""
    attempt: int = 0

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "state": self.state,
            "reason": self.reason,
            "attempt": self.attempt,
        })
        return base


@dataclass(frozen=True)
class AutoTradeExecuted(DomainEvent):
    """Evento: el auto-trader abrió un trade para un usuario."""

    user_id: str = ""
    trade_id: str = ""
    symbol: str = ""
    action: str = ""
    confidence: float = 0.0
    is_demo: bool = True

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "user_id": self.user_id,
            "trade_id": self.trade_id,
            "symbol": self.symbol,
            "action": self.action,
            "confidence": self.confidence,
            "is_demo": self.is_demo,
        })
        return base


@dataclass(frozen=True)
class TradeClosed(DomainEvent):
    """Evento: se cerró un trade."""

    trade_id: str = ""
    user_id: str = ""
    symbol: str = ""
    trade_type: str = ""
    entry_price: float = 0.0
    exit_price: float = 0.0
    profit_loss: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "trade_id": self.trade_id,
            "user_id": self.user_id,
            "symbol": self.symbol,
            "type": self.trade_type,
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "profit_loss": self.profit_loss,
        })
        return base
