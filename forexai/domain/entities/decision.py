"""
ForexAI – Domain Entities: Decision / AnalysisLog
=================================================
Decision es el resultado fresco de cada análisis. AnalysisLog es su
registro append-only (nunca se muta).

La confianza de ambos vive siempre en [0, 0.95].
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from forexai.domain.exceptions.domain_errors import ValidationError

MAX_CONFIDENCE = 0.95


class Action(str, Enum):
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class LogType(str, Enum):
    ANALYSIS = "analysis"
    DECISION = "decision"
    TRADE = "trade"
    ERROR = "error"


def _check_confidence(value: float) -> None:
    if not 0.0 <= value <= MAX_CONFIDENCE:
        raise ValidationError(
            f"Confianza fuera de rango: {value}", field="confidence", value=value
        )


@dataclass(frozen=True, slots=True)
class Decision:
    """Recomendación de trading producida por el motor."""

    action: Action
    confidence: float
    bullish_signals: float = 0.0
    bearish_signals: float = 0.0
    reasons: Tuple[str, ...] = ()
    risk_level: RiskLevel = RiskLevel.HIGH
    suggested_stop_loss: Optional[float] = None
    suggested_take_profit: Optional[float] = None
    indicators_summary: Dict[str, Any] = field(default_factory=dict)
    # Contexto que agrega el caso de uso (el motor es puro)
    symbol: Optional[str] = None
    timeframe: Optional[str] = None
    current_price: Optional[float] = None
    timestamp: Optional[float] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        _check_confidence(self.confidence)

    @property
    def is_actionable(self) -> bool:
        return self.action != Action.HOLD

    @classmethod
    def hold(cls, reason: str, error: Optional[str] = None, **context: Any) -> "Decision":
        """Decisión degradada: HOLD con confianza 0."""
        return cls(
            action=Action.HOLD,
            confidence=0.0,
            reasons=(reason,),
            error=error,
            **context,
        )

    def with_context(self, **context: Any) -> "Decision":
        return replace(self, **context)

    def to_dict(self) -> dict:
        data = {
            "action": self.action.value,
            "confidence": self.confidence,
            "bullish_signals": self.bullish_signals,
            "bearish_signals": self.bearish_signals,
            "reasons": list(self.reasons),
            "risk_level": self.risk_level.value,
            "suggested_stop_loss": self.suggested_stop_loss,
            "suggested_take_profit": self.suggested_take_profit,
            "indicators_summary": dict(self.indicators_summary),
            "symbol": self.symbol,
            "timeframe": self.timeframe,
            "current_price": self.current_price,
            "timestamp": self.timestamp,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True, slots=True)
class AnalysisLog:
    """Entrada append-only del log de análisis."""

    log_type: LogType
    symbol: Optional[str]
    message: str
    confidence: float = 0.0
    data: Dict[str, Any] = field(default_factory=dict)
    user_id: Optional[str] = None
    created_at: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        _check_confidence(self.confidence)

    @classmethod
    def from_decision(cls, decision: Decision, user_id: Optional[str] = None) -> "AnalysisLog":
        log_type = LogType.ERROR if decision.error else LogType.ANALYSIS
        message = (
            f"Analysis failed: {decision.error}" if decision.error
            else f"{decision.action.value.upper()} {decision.symbol} "
                 f"(confidence {decision.confidence:.3f})"
        )
        return cls(
            log_type=log_type,
            symbol=decision.symbol,
            message=message,
            confidence=decision.confidence,
            data=decision.to_dict(),
            user_id=user_id,
        )

    def to_dict(self) -> dict:
        return {
            "type": self.log_type.value,
            "symbol": self.symbol,
            "message": self.message,
            "confidence": self.confidence,
            "data": self.data,
            "user_id": self.user_id,
            "created_at": self.created_at,
        }
