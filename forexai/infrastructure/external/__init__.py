"""Adaptadores externos: EventBus, feed Deriv y feed simulado."""
from forexai.infrastructure.external.event_bus_adapter import EventBus
from forexai.infrastructure.external.deriv_adapter import DerivAdapter
from forexai.infrastructure.external.simulated_feed import SimulatedFeed

__all__ = ["EventBus", "DerivAdapter", "SimulatedFeed"]
