"""Application ports (interfaces hacia infraestructura)."""
from forexai.application.ports.event_publisher import IEventBus, IEventPublisher
from forexai.application.ports.market_data_provider import BuyOrder, IFeedClient

__all__ = ["IEventBus", "IEventPublisher", "IFeedClient", "BuyOrder"]
