"""
ForexAI – In-Memory Repositories
================================
Implementaciones en memoria de los repositorios de dominio. Se usan
cuando la base de datos está deshabilitada (desarrollo) y en tests.

Mismo contrato que las implementaciones SQL:
- Velas únicas por (symbol, timeframe, timestamp), lectura ASC.
- Lock por (symbol, timeframe): símbolos distintos no se serializan.
- Cierre de trade atómico: solo un trade ACTIVE puede cerrarse.
"""

from __future__ import annotations

import bisect
from typing import Dict, List, Optional, Tuple

from forexai.domain.entities.candle import Candle
from forexai.domain.entities.decision import AnalysisLog
from forexai.domain.entities.trade import Trade, TradeStatus
from forexai.domain.entities.user import TradingUser
from forexai.domain.exceptions.domain_errors import InvalidTradeError
from forexai.domain.repositories.analysis_log_repository import IAnalysisLogRepository
from forexai.domain.repositories.market_data_repository import IMarketDataRepository
from forexai.domain.repositories.trade_repository import ITradeRepository
from forexai.domain.repositories.user_repository import IUserRepository
from forexai.infrastructure.persistence.locks import KeyedLock

SeriesKey = Tuple[str, str]


class InMemoryMarketDataRepository(IMarketDataRepository):
    """Series de velas ordenadas por timestamp, una por (symbol, timeframe)."""

    def __init__(self, max_candles_per_series: int = 5_000):
        self._max = max_candles_per_series
        self._timestamps: Dict[SeriesKey, List[float]] = {}
        self._candles: Dict[SeriesKey, List[Candle]] = {}
        self._locks = KeyedLock()

    async def upsert_candle(self, candle: Candle, update_volume: bool = False) -> Candle:
        key = (candle.symbol, candle.timeframe)
        async with self._locks(key):
            timestamps = self._timestamps.setdefault(key, [])
            candles = self._candles.setdefault(key, [])

            idx = bisect.bisect_left(timestamps, candle.timestamp)
            if idx < len(timestamps) and timestamps[idx] == candle.timestamp:
                stored = candles[idx].with_ohlc_of(candle, update_volume=update_volume)
                candles[idx] = stored
                return stored

            timestamps.insert(idx, candle.timestamp)
            candles.insert(idx, candle)
            # Ventana acotada: se descartan las más antiguas
            if len(candles) > self._max:
                del timestamps[0]
                del candles[0]
            return candle

    async def get_recent_candles(
        self, symbol: str, timeframe: str, limit: int = 200,
    ) -> List[Candle]:
        candles = self._candles.get((symbol, timeframe), [])
        return list(candles[-limit:]) if limit > 0 else []

    async def count(self, symbol: str, timeframe: str) -> int:
        return len(self._candles.get((symbol, timeframe), []))


class InMemoryTradeRepository(ITradeRepository):

    def __init__(self) -> None:
        self._trades: Dict[str, Trade] = {}
        self._locks = KeyedLock()

    async def add(self, trade: Trade) -> Trade:
        if trade.trade_id in self._trades:
            raise InvalidTradeError("trade_id duplicado", trade.trade_id)
        self._trades[trade.trade_id] = trade
        return trade

    async def get(self, trade_id: str) -> Optional[Trade]:
        return self._trades.get(trade_id)

    async def update_closed(self, trade: Trade) -> Trade:
        async with self._locks(trade.trade_id):
            current = self._trades.get(trade.trade_id)
            if current is None:
                raise InvalidTradeError("Trade no encontrado", trade.trade_id)
            if current.status != TradeStatus.ACTIVE:
                raise InvalidTradeError(
                    f"Trade no activo (status={current.status.value})", trade.trade_id
                )
            self._trades[trade.trade_id] = trade
            return trade

    async def count_opened_since(self, user_id: str, since: float) -> int:
        return sum(
            1 for t in self._trades.values()
            if t.user_id == user_id and t.opened_at >= since
        )

    async def list_by_user(self, user_id: str, limit: int = 50) -> List[Trade]:
        trades = [t for t in self._trades.values() if t.user_id == user_id]
        trades.sort(key=lambda t: t.opened_at, reverse=True)
        return trades[:limit]

    async def list_active(self, user_id: Optional[str] = None) -> List[Trade]:
        trades = [
            t for t in self._trades.values()
            if t.is_open and (user_id is None or t.user_id == user_id)
        ]
        trades.sort(key=lambda t: t.opened_at)
        return trades


class InMemoryAnalysisLogRepository(IAnalysisLogRepository):

    def __init__(self, max_entries: int = 10_000):
        self._max = max_entries
        self._entries: List[AnalysisLog] = []

    async def append(self, entry: AnalysisLog) -> None:
        self._entries.append(entry)
        if len(self._entries) > self._max:
            del self._entries[0]

    async def list_recent(
        self, symbol: Optional[str] = None, limit: int = 50,
    ) -> List[AnalysisLog]:
        entries = [e for e in reversed(self._entries) if symbol is None or e.symbol == symbol]
        return entries[:limit]


class InMemoryUserRepository(IUserRepository):

    def __init__(self, users: Optional[List[TradingUser]] = None):
        self._users: Dict[str, TradingUser] = {u.user_id: u for u in users or []}

    async def list_auto_trading_users(self) -> List[TradingUser]:
        return [
            u for _, u in sorted(self._users.items()) if u.auto_trading_enabled
        ]

    async def get(self, user_id: str) -> Optional[TradingUser]:
        return self._users.get(user_id)

    async def save(self, user: TradingUser) -> TradingUser:
        self._users[user.user_id] = user
        return user
