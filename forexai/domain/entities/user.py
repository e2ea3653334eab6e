"""
ForexAI – Domain Entity: TradingUser
====================================
Vista de solo lectura de un usuario con lo que necesita el auto-trading:
estado, tier de suscripción y ajustes de trading.
"""

from __future__ import annotations

from dataclasses import dataclass

UNLIMITED = -1


@dataclass(frozen=True, slots=True)
class TradingUser:
    user_id: str
    subscription_tier: str = "free"   # free | basic | premium
    status: str = "active"
    trading_active: bool = False
    ai_active: bool = False
    max_daily_trades: int = 50        # -1 = ilimitado
    entry_amount: float = 25.0
    demo_mode: bool = True

    @property
    def auto_trading_enabled(self) -> bool:
        return self.status == "active" and self.trading_active and self.ai_active

    def effective_daily_cap(self, tier_cap: int) -> int:
        """
        Combina el cap del tier con el del usuario (-1 = ilimitado).

        El resultado es el más restrictivo de ambos; 0 deja al usuario
        fuera del auto-trading.
        """
        if tier_cap == UNLIMITED:
            return self.max_daily_trades
        if self.max_daily_trades == UNLIMITED:
            return tier_cap
        return min(tier_cap, self.max_daily_trades)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "subscription_tier": self.subscription_tier,
            "status": self.status,
            "trading_active": self.trading_active,
            "ai_active": self.ai_active,
            "max_daily_trades": self.max_daily_trades,
            "entry_amount": self.entry_amount,
            "demo_mode": self.demo_mode,
        }
