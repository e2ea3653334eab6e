"""
ForexAI – ORM Models Package
============================
Modelos SQLAlchemy para persistencia (MySQL en producción).

ESTRUCTURA:
    models/
    ├── candle.py         # Velas OHLCV (Market Data Store)
    ├── trade.py          # Trades demo / live
    ├── analysis_log.py   # Log append-only de análisis
    └── user.py           # Vista de usuario para auto-trading
"""

from forexai.infrastructure.persistence.models.candle import CandleModel
from forexai.infrastructure.persistence.models.trade import TradeModel
from forexai.infrastructure.persistence.models.analysis_log import AnalysisLogModel
from forexai.infrastructure.persistence.models.user import UserModel

__all__ = [
    "CandleModel",
    "TradeModel",
    "AnalysisLogModel",
    "UserModel",
]
