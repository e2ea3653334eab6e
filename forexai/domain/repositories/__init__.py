"""Domain repository interfaces (ABCs)."""
from forexai.domain.repositories.market_data_repository import IMarketDataRepository
from forexai.domain.repositories.trade_repository import ITradeRepository
from forexai.domain.repositories.analysis_log_repository import IAnalysisLogRepository
from forexai.domain.repositories.user_repository import IUserRepository

__all__ = [
    "IMarketDataRepository",
    "ITradeRepository",
    "IAnalysisLogRepository",
    "IUserRepository",
]
