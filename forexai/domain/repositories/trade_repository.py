"""
ForexAI – Domain Repository Interface: Trade
============================================
Persistencia de trades. Los errores de escritura NO se tragan: se
propagan para que el caller nunca crea que un trade existe cuando no.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from forexai.domain.entities.trade import Trade


class ITradeRepository(ABC):

    @abstractmethod
    async def add(self, trade: Trade) -> Trade:
        """Persiste un trade nuevo (trade_id único)."""
        pass

    @abstractmethod
    async def get(self, trade_id: str) -> Optional[Trade]:
        pass

    @abstractmethod
    async def update_closed(self, trade: Trade) -> Trade:
        """
        Persiste el cierre de un trade ACTIVO en una sola escritura
        (status, exit_price, profit_loss, closed_at).

        Raises:
            InvalidTradeError: si el trade no existe o ya no está activo.
        """
        pass

    @abstractmethod
    async def count_opened_since(self, user_id: str, since: float) -> int:
        """Trades del usuario abiertos desde `since` (epoch)."""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str, limit: int = 50) -> List[Trade]:
        """Trades del usuario, más recientes primero."""
        pass

    @abstractmethod
    async def list_active(self, user_id: Optional[str] = None) -> List[Trade]:
        pass
