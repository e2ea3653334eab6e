"""Domain entities."""
from forexai.domain.entities.candle import Candle, VALID_TIMEFRAMES
from forexai.domain.entities.trade import Trade, TradeStatus, TradeType
from forexai.domain.entities.decision import (
    Action,
    AnalysisLog,
    Decision,
    LogType,
    RiskLevel,
    MAX_CONFIDENCE,
)
from forexai.domain.entities.user import TradingUser

__all__ = [
    "Candle",
    "VALID_TIMEFRAMES",
    "Trade",
    "TradeStatus",
    "TradeType",
    "Action",
    "AnalysisLog",
    "Decision",
    "LogType",
    "RiskLevel",
    "MAX_CONFIDENCE",
    "TradingUser",
]
