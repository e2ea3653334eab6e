"""Implementaciones concretas de los repositorios de dominio."""
from forexai.infrastructure.persistence.repositories.market_data_repository_impl import (
    MarketDataRepositoryImpl,
)
from forexai.infrastructure.persistence.repositories.trade_repository_impl import (
    TradeRepositoryImpl,
)
from forexai.infrastructure.persistence.repositories.analysis_log_repository_impl import (
    AnalysisLogRepositoryImpl,
)
from forexai.infrastructure.persistence.repositories.user_repository_impl import (
    UserRepositoryImpl,
)
from forexai.infrastructure.persistence.repositories.memory_repositories import (
    InMemoryAnalysisLogRepository,
    InMemoryMarketDataRepository,
    InMemoryTradeRepository,
    InMemoryUserRepository,
)

__all__ = [
    "MarketDataRepositoryImpl",
    "TradeRepositoryImpl",
    "AnalysisLogRepositoryImpl",
    "UserRepositoryImpl",
    "InMemoryMarketDataRepository",
    "InMemoryTradeRepository",
    "InMemoryAnalysisLogRepository",
    "InMemoryUserRepository",
]
