"""
ForexAI – Use Case: Auto Trade
==============================
Reparte una decisión de alta confianza entre los usuarios elegibles.

ELEGIBILIDAD:
  status == active AND trading_active AND ai_active
  cap efectivo = combinación del cap del tier y el del usuario
                 (-1 ilimitado, 0 → sin auto-trading)

RACE DEL CAP DIARIO:
  Dos ciclos de análisis concurrentes podrían pasar el chequeo del cap
  antes de que cualquiera inserte. Por eso chequeo + ejecución + insert
  corren bajo un asyncio.Lock POR USUARIO: usuarios distintos no se
  bloquean entre sí.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import Callable, Dict, List

from forexai.application.ports.event_publisher import AUTO_TRADE_EXECUTED, IEventPublisher
from forexai.application.state.engine_config_store import EngineConfigStore
from forexai.application.use_cases.execute_trade_usecase import ExecuteTradeUseCase
from forexai.domain.entities.decision import Decision
from forexai.domain.entities.trade import Trade
from forexai.domain.entities.user import UNLIMITED, TradingUser
from forexai.domain.events.domain_events import AutoTradeExecuted
from forexai.domain.exceptions.domain_errors import (
    BrokerExecutionError,
    InvalidTradeError,
    UnsupportedSymbolError,
)
from forexai.domain.repositories.trade_repository import ITradeRepository
from forexai.domain.repositories.user_repository import IUserRepository
from forexai.shared.logging.logger import get_logger

logger = get_logger("auto_trade")


def start_of_day(now: float) -> float:
    """Epoch de la medianoche UTC del día de `now`."""
    day = datetime.fromtimestamp(now, tz=timezone.utc)
    return day.replace(hour=0, minute=0, second=0, microsecond=0).timestamp()


class AutoTradeUseCase:

    def __init__(
        self,
        user_repository: IUserRepository,
        trade_repository: ITradeRepository,
        execute_trade: ExecuteTradeUseCase,
        event_publisher: IEventPublisher,
        config_store: EngineConfigStore,
        clock: Callable[[], float] = time.time,
    ):
        self._users = user_repository
        self._trades = trade_repository
        self._execute_trade = execute_trade
        self._publisher = event_publisher
        self._config_store = config_store
        self._clock = clock
        self._user_locks: Dict[str, asyncio.Lock] = {}

    async def execute(self, symbol: str, decision: Decision) -> List[Trade]:
        """Ejecuta la decisión para cada usuario elegible. Returns: trades creados."""
        if not decision.is_actionable:
            return []

        users = await self._users.list_auto_trading_users()
        executed: List[Trade] = []
        for user in users:
            trade = await self._execute_for_user(user, symbol, decision)
            if trade is not None:
                executed.append(trade)

        logger.info(
            "Auto-trade %s %s: %d/%d usuarios ejecutados",
            decision.action.value.upper(), symbol, len(executed), len(users),
        )
        return executed

    async def _execute_for_user(
        self, user: TradingUser, symbol: str, decision: Decision,
    ) -> Trade | None:
        if not user.auto_trading_enabled:
            return None

        cap = user.effective_daily_cap(
            self._config_store.get().tier_cap(user.subscription_tier)
        )
        if cap == 0:
            logger.debug("Usuario %s sin auto-trading en tier '%s'",
                         user.user_id, user.subscription_tier)
            return None

        async with self._lock_for(user.user_id):
            if cap != UNLIMITED:
                today = await self._trades.count_opened_since(
                    user.user_id, start_of_day(self._clock()),
                )
                if today >= cap:
                    logger.info("Usuario %s alcanzó su límite diario (%d/%d)",
                                user.user_id, today, cap)
                    return None

            try:
                trade = await self._execute_trade.execute(user, symbol, decision)
            except (BrokerExecutionError, UnsupportedSymbolError, InvalidTradeError) as e:
                logger.warning("Auto-trade fallido para %s en %s: %s",
                               user.user_id, symbol, e.message)
                return None

        await self._publisher.publish(
            AUTO_TRADE_EXECUTED,
            AutoTradeExecuted(
                user_id=user.user_id,
                trade_id=trade.trade_id,
                symbol=symbol,
                action=decision.action.value,
                confidence=decision.confidence,
                is_demo=trade.is_demo,
            ).to_dict(),
        )
        return trade

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._user_locks.get(user_id)
        if lock is None:
            lock = self._user_locks[user_id] = asyncio.Lock()
        return lock
