"""
ForexAI – Domain Repository Interface: Users
============================================
Lectura de usuarios para el auto-trading.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from forexai.domain.entities.user import TradingUser


class IUserRepository(ABC):

    @abstractmethod
    async def list_auto_trading_users(self) -> List[TradingUser]:
        """Usuarios activos con trading y AI habilitados."""
        pass

    @abstractmethod
    async def get(self, user_id: str) -> Optional[TradingUser]:
        pass

    @abstractmethod
    async def save(self, user: TradingUser) -> TradingUser:
        """Alta o reemplazo de la vista de usuario (provisioning / tests)."""
        pass
