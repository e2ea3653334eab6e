"""
ForexAI – Domain Value Objects: PriceTick / PriceSnapshot
=========================================================
PriceTick es el tick crudo que llega del feed. PriceSnapshot es la entrada
que guarda el PriceCache: el último tick más la variación respecto al
precio anterior del mismo símbolo.

- frozen=True → inmutable, seguro para pasar entre coroutines.
- slots=True  → menor footprint de memoria en hot-path.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PriceTick:
    """Tick de precio atómico recibido del feed."""

    symbol: str        # par de mercado (e.g. "EURUSD")
    price: float       # cotización actual
    bid: float | None = None
    ask: float | None = None
    timestamp: float = 0.0  # epoch del broker

    def to_dict(self) -> dict:
        """Serialización para WebSocket / frontend."""
        return {
            "symbol": self.symbol,
            "price": self.price,
            "bid": self.bid,
            "ask": self.ask,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, slots=True)
class PriceSnapshot:
    """Último precio conocido de un símbolo."""

    symbol: str
    price: float
    bid: float
    ask: float
    spread: float
    timestamp: float
    change_absolute: float = 0.0
    change_percentage: float = 0.0

    @classmethod
    def from_tick(cls, tick: PriceTick, previous: "PriceSnapshot | None" = None) -> "PriceSnapshot":
        """Construye el snapshot; bid/ask ausentes se igualan al precio."""
        bid = tick.bid if tick.bid is not None else tick.price
        ask = tick.ask if tick.ask is not None else tick.price
        change = 0.0
        change_pct = 0.0
        if previous is not None and previous.price:
            change = tick.price - previous.price
            change_pct = change / previous.price * 100
        return cls(
            symbol=tick.symbol,
            price=tick.price,
            bid=bid,
            ask=ask,
            spread=ask - bid,
            timestamp=tick.timestamp,
            change_absolute=change,
            change_percentage=change_pct,
        )

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "price": self.price,
            "bid": self.bid,
            "ask": self.ask,
            "spread": self.spread,
            "timestamp": self.timestamp,
            "change": {
                "absolute": self.change_absolute,
                "percentage": self.change_percentage,
            },
        }
