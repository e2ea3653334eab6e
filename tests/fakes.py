"""Fakes and candle builders shared by the test suite."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Tuple

from forexai.application.ports.event_publisher import IEventPublisher
from forexai.application.ports.market_data_provider import BuyOrder, IFeedClient
from forexai.domain.entities.candle import Candle
from forexai.domain.entities.decision import Action, Decision
from forexai.domain.exceptions.domain_errors import (
    FeedConnectivityError,
    UnsupportedSymbolError,
)

BASE_TIME = 1_699_999_800.0  # múltiplo de 300


# ─── Candle builders ───────────────────────────────────────────────────

def make_candles(
    closes: Sequence[float],
    symbol: str = "EURUSD",
    timeframe: str = "5m",
    step: float = 300.0,
    wick: float = 0.0002,
    volume: float = 100.0,
    first_open: Optional[float] = None,
) -> List[Candle]:
    """Velas consecutivas: open = close anterior, mechas de `wick`."""
    candles = []
    previous = first_open if first_open is not None else closes[0]
    for i, close in enumerate(closes):
        open_price = previous
        candles.append(Candle(
            symbol=symbol,
            timeframe=timeframe,
            timestamp=BASE_TIME + i * step,
            open=open_price,
            high=max(open_price, close) + wick,
            low=min(open_price, close) - wick,
            close=close,
            volume=volume,
        ))
        previous = close
    return candles


def zigzag_uptrend(count: int = 200, symbol: str = "EURUSD") -> List[Candle]:
    """Tendencia alcista con oscilación alternada; la última vela es alcista."""
    closes = [
        1.0 + 0.0006 * i + (0.0012 if i % 2 else -0.0012)
        for i in range(count)
    ]
    return make_candles(closes, symbol=symbol)


def monotonic_uptrend(count: int = 100, symbol: str = "EURUSD") -> List[Candle]:
    closes = [1.05 + 0.0005 * i for i in range(count)]
    return make_candles(closes, symbol=symbol, first_open=closes[0] - 0.0005)


def make_decision(
    action: Action = Action.BUY,
    confidence: float = 0.85,
    symbol: str = "EURUSD",
    price: Optional[float] = 1.1,
    stop_loss: Optional[float] = None,
    take_profit: Optional[float] = None,
) -> Decision:
    return Decision(
        action=action,
        confidence=confidence,
        symbol=symbol,
        timeframe="5m",
        current_price=price,
        suggested_stop_loss=stop_loss,
        suggested_take_profit=take_profit,
    )


# ─── Ports ─────────────────────────────────────────────────────────────

class RecordingPublisher(IEventPublisher):
    """Sink de notificaciones que guarda (topic, data)."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, Any]] = []

    async def publish(self, topic: str, data: Any) -> None:
        self.events.append((topic, data))

    def of(self, topic: str) -> List[Any]:
        return [data for t, data in self.events if t == topic]


class FakeFeed(IFeedClient):
    """
    Feed configurable.

    connect_failures: cantidad de connect() que fallan antes de conectar
    (-1 = fallan siempre).
    """

    def __init__(
        self,
        connect_failures: int = 0,
        buy_response: Optional[Dict[str, Any]] = None,
        buy_error: Optional[Exception] = None,
        unsupported: Sequence[str] = (),
    ) -> None:
        self.connect_failures = connect_failures
        self.buy_response = buy_response if buy_response is not None else {"contract_id": "C-1"}
        self.buy_error = buy_error
        self.unsupported = set(unsupported)
        self.connect_calls = 0
        self.disconnect_calls = 0
        self.tick_subscriptions: List[str] = []
        self.candle_subscriptions: List[Tuple[str, int]] = []
        self.orders: List[BuyOrder] = []
        self._connected = False

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_failures < 0 or self.connect_calls <= self.connect_failures:
            raise FeedConnectivityError("connection refused")
        self._connected = True

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self._connected = False

    async def subscribe_ticks(self, symbol: str) -> None:
        if symbol in self.unsupported:
            raise UnsupportedSymbolError(symbol)
        self.tick_subscriptions.append(symbol)

    async def subscribe_candles(self, symbol: str, granularity: int) -> None:
        if symbol in self.unsupported:
            raise UnsupportedSymbolError(symbol)
        self.candle_subscriptions.append((symbol, granularity))

    async def buy(self, order: BuyOrder) -> Dict[str, Any]:
        self.orders.append(order)
        if self.buy_error is not None:
            raise self.buy_error
        return self.buy_response

    async def sell(self, contract_id: str, price: float) -> Dict[str, Any]:
        return {"contract_id": contract_id, "sold_for": price}

    @property
    def is_connected(self) -> bool:
        return self._connected


class FakeAnalyzer:
    """AnalyzeMarketUseCase falso; `gate` permite bloquear el análisis."""

    def __init__(self, decision: Optional[Decision] = None, gate: Optional[asyncio.Event] = None):
        self.decision = decision
        self.gate = gate
        self.calls: List[Tuple[str, str]] = []

    async def analyze(self, symbol: str, timeframe: str = "5m") -> Decision:
        self.calls.append((symbol, timeframe))
        if self.gate is not None:
            await self.gate.wait()
        if self.decision is not None:
            return self.decision.with_context(symbol=symbol, timeframe=timeframe)
        return Decision.hold("No signal", symbol=symbol, timeframe=timeframe)


class FakeAutoTrader:

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Decision]] = []

    async def execute(self, symbol: str, decision: Decision) -> list:
        self.calls.append((symbol, decision))
        return []


class FailingAnalysisLogRepository:
    """Log de análisis cuya escritura siempre falla."""

    async def append(self, entry) -> None:
        raise RuntimeError("disk full")

    async def list_recent(self, symbol=None, limit: int = 50) -> list:
        return []


async def drain(rounds: int = 5) -> None:
    """Cede el loop para que corran las tasks pendientes."""
    for _ in range(rounds):
        await asyncio.sleep(0)
