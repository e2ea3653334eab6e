"""Domain exceptions."""
from forexai.domain.exceptions.domain_errors import (
    DomainError,
    InsufficientDataError,
    UnsupportedSymbolError,
    FeedConnectivityError,
    BrokerExecutionError,
    ConfigValidationError,
    InvalidTradeError,
    AnalysisInProgressError,
    ValidationError,
)

__all__ = [
    "DomainError",
    "InsufficientDataError",
    "UnsupportedSymbolError",
    "FeedConnectivityError",
    "BrokerExecutionError",
    "ConfigValidationError",
    "InvalidTradeError",
    "AnalysisInProgressError",
    "ValidationError",
]
