"""
ForexAI – Application Port: Feed Client
=======================================
Interfaz del proveedor de datos de mercado y de órdenes live.

Los eventos del feed NO se devuelven por esta interfaz: la
implementación los publica en el EventBus, en los tópicos FEED_*:

  FEED_TICK_TOPIC    → PriceTick
  FEED_CANDLE_TOPIC  → Candle
  FEED_STATUS_TOPIC  → ConnectivityChanged (connected/disconnected/error)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict

FEED_TICK_TOPIC = "feed.tick"
FEED_CANDLE_TOPIC = "feed.candle"
FEED_STATUS_TOPIC = "feed.status"


@dataclass(frozen=True)
class BuyOrder:
    """Parámetros de una orden live."""

    symbol: str               # par de mercado (e.g. "EURUSD")
    contract_type: str        # CALL | PUT
    amount: float
    duration: int = 300
    duration_unit: str = "s"
    basis: str = "stake"
    currency: str = "USD"


class IFeedClient(ABC):
    """
    Cliente del feed de mercado / broker.

    IMPLEMENTACIONES:
    - DerivAdapter (WebSocket real)
    - SimulatedFeed (random walk, desarrollo)
    - Fakes en tests
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Abre la conexión.

        Raises:
            FeedConnectivityError: si no se pudo conectar.
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        pass

    @abstractmethod
    async def subscribe_ticks(self, symbol: str) -> None:
        """
        Raises:
            UnsupportedSymbolError: símbolo sin mapeo.
        """
        pass

    @abstractmethod
    async def subscribe_candles(self, symbol: str, granularity: int) -> None:
        """
        Raises:
            UnsupportedSymbolError: símbolo sin mapeo.
        """
        pass

    @abstractmethod
    async def buy(self, order: BuyOrder) -> Dict[str, Any]:
        """
        Coloca una orden live.

        Returns:
            Respuesta del broker con al menos `contract_id`.

        Raises:
            BrokerExecutionError: orden rechazada o sin confirmar.
        """
        pass

    @abstractmethod
    async def sell(self, contract_id: str, price: float) -> Dict[str, Any]:
        pass

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        pass

    @property
    def stats(self) -> dict:
        return {"connected": self.is_connected}
