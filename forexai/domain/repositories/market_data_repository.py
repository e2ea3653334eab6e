"""
ForexAI – Domain Repository Interface: Market Data
==================================================
Contrato del Market Data Store.

ESCRITURA:
  Upsert por clave natural (symbol, timeframe, timestamp). Sobrescribe
  OHLC; el volumen original se conserva salvo update_volume=True.

LECTURA:
  Las N velas más recientes en orden ASCENDENTE (más antigua primero);
  el cálculo de indicadores depende de ese orden.

CONCURRENCIA:
  Los bloqueos, si los hay, son por clave (symbol, timeframe). Escritores
  de símbolos distintos nunca se serializan entre sí.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence

from forexai.domain.entities.candle import Candle


class IMarketDataRepository(ABC):

    @abstractmethod
    async def upsert_candle(self, candle: Candle, update_volume: bool = False) -> Candle:
        """
        Inserta o actualiza una vela.

        Returns:
            La vela tal como quedó almacenada.
        """
        pass

    async def upsert_candles(
        self, candles: Sequence[Candle], update_volume: bool = False,
    ) -> int:
        """Upsert en lote. Returns: cantidad procesada."""
        for candle in candles:
            await self.upsert_candle(candle, update_volume=update_volume)
        return len(candles)

    @abstractmethod
    async def get_recent_candles(
        self, symbol: str, timeframe: str, limit: int = 200,
    ) -> List[Candle]:
        """Últimas `limit` velas en orden ascendente."""
        pass

    @abstractmethod
    async def count(self, symbol: str, timeframe: str) -> int:
        """Cantidad de velas almacenadas para (symbol, timeframe)."""
        pass
