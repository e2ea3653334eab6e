"""Domain events."""
from forexai.domain.events.domain_events import (
    DomainEvent,
    ConnectivityChanged,
    AutoTradeExecuted,
    TradeClosed,
)

__all__ = ["DomainEvent", "ConnectivityChanged", "AutoTradeExecuted", "TradeClosed"]
