"""
ForexAI – Simulated Feed
========================
IFeedClient para desarrollo sin broker: random walk por símbolo.

- Un tick por símbolo suscrito cada `tick_interval` segundos.
  Variación ±0.05% del precio, spread fijo de 0.0002 (2 pips).
- Velas construidas a partir de los ticks, una por granularidad
  suscrita: el primer tick de un bucket abre la vela, los siguientes
  actualizan high/low/close, y al pasar el cierre del bucket la vela se
  publica congelada.
- subscribe_candles() publica primero un histórico sintético para que
  el análisis tenga ventana desde el arranque.
- buy()/sell() responden como un broker que siempre acepta.
"""

from __future__ import annotations

import asyncio
import math
import random
import time
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from forexai.application.ports.event_publisher import IEventPublisher
from forexai.application.ports.market_data_provider import (
    FEED_CANDLE_TOPIC,
    FEED_STATUS_TOPIC,
    FEED_TICK_TOPIC,
    BuyOrder,
    IFeedClient,
)
from forexai.domain.entities.candle import Candle
from forexai.domain.events.domain_events import ConnectivityChanged
from forexai.domain.exceptions.domain_errors import (
    FeedConnectivityError,
    UnsupportedSymbolError,
)
from forexai.domain.value_objects.tick import PriceTick
from forexai.shared.config.settings import TIMEFRAMES
from forexai.shared.logging.logger import get_logger

logger = get_logger("simulated_feed")

BASE_PRICES: Dict[str, float] = {
    "EURUSD": 1.0850,
    "GBPUSD": 1.2735,
    "USDJPY": 148.25,
    "AUDUSD": 0.6680,
    "USDCAD": 1.3520,
    "EURGBP": 0.8520,
    "EURJPY": 160.85,
    "GBPJPY": 188.80,
    "XAUUSD": 2030.0,
    "XAGUSD": 23.10,
}

SPREAD = 0.0002
TICK_VARIATION = 0.0005
HISTORY_COUNT = 200

_GRANULARITY_TIMEFRAMES = {v: k for k, v in TIMEFRAMES.items()}


def generate_candles(
    symbol: str,
    timeframe: str,
    count: int,
    start_price: float,
    end_time: Optional[float] = None,
    rng: Optional[random.Random] = None,
    volatility: float = 0.001,
) -> List[Candle]:
    """
    Serie sintética de `count` velas consecutivas (ASC) que termina en el
    bucket anterior a `end_time`.
    """
    rng = rng or random.Random()
    seconds = TIMEFRAMES[timeframe]
    end_time = end_time if end_time is not None else time.time()
    first_open = (math.floor(end_time / seconds) - count) * seconds

    candles: List[Candle] = []
    price = start_price
    for i in range(count):
        open_price = price
        close_price = max(open_price * (1 + rng.uniform(-volatility, volatility)), 1e-6)
        wick = abs(close_price - open_price) * rng.uniform(0.1, 0.8) + open_price * 0.0001
        candles.append(Candle(
            symbol=symbol,
            timeframe=timeframe,
            timestamp=float(first_open + i * seconds),
            open=open_price,
            high=max(open_price, close_price) + wick,
            low=max(min(open_price, close_price) - wick, 1e-6),
            close=close_price,
            volume=float(rng.randint(50, 500)),
        ))
        price = close_price
    return candles


@dataclass
class _BuildingCandle:
    """Vela mutable en construcción (solo uso interno)."""

    symbol: str
    timeframe: str
    open_time: float
    close_time: float
    open: float = 0.0
    high: float = -math.inf
    low: float = math.inf
    close: float = 0.0
    tick_count: int = 0

    def update(self, price: float) -> None:
        if self.tick_count == 0:
            self.open = price
        self.high = max(self.high, price)
        self.low = min(self.low, price)
        self.close = price
        self.tick_count += 1

    def freeze(self) -> Candle:
        return Candle(
            symbol=self.symbol,
            timeframe=self.timeframe,
            timestamp=self.open_time,
            open=self.open,
            high=self.high,
            low=self.low,
            close=self.close,
            volume=float(self.tick_count),
        )


class SimulatedFeed(IFeedClient):
    """Feed de random walk que publica en el EventBus como lo haría Deriv."""

    def __init__(
        self,
        event_bus: IEventPublisher,
        tick_interval: float = 1.0,
        base_prices: Optional[Dict[str, float]] = None,
        rng: Optional[random.Random] = None,
        history_count: int = HISTORY_COUNT,
    ) -> None:
        self._event_bus = event_bus
        self._tick_interval = tick_interval
        self._prices: Dict[str, float] = dict(base_prices or BASE_PRICES)
        self._rng = rng or random.Random()
        self._history_count = history_count

        self._connected = False
        self._tick_task: Optional[asyncio.Task] = None
        self._tick_symbols: set[str] = set()
        # (symbol, granularity) → vela en construcción
        self._building: Dict[Tuple[str, int], Optional[_BuildingCandle]] = {}

        self._ticks_sent = 0
        self._candles_sent = 0
        self._orders = 0

    # ──────────────────────── Lifecycle ──────────────────────────────────

    async def connect(self) -> None:
        if self._connected:
            return
        self._connected = True
        self._tick_task = asyncio.create_task(self._tick_loop(), name="simulated-ticks")
        logger.info("Feed simulado conectado (%.1fs por tick)", self._tick_interval)
        await self._event_bus.publish(
            FEED_STATUS_TOPIC, ConnectivityChanged(state="connected", reason="simulated"),
        )

    async def disconnect(self) -> None:
        self._connected = False
        if self._tick_task and not self._tick_task.done():
            self._tick_task.cancel()
            try:
                await self._tick_task
            except asyncio.CancelledError:
                pass
        self._tick_task = None
        logger.info(
            "Feed simulado detenido. Ticks: %d, velas: %d",
            self._ticks_sent, self._candles_sent,
        )

    # ──────────────────────── Subscriptions ─────────────────────────────

    async def subscribe_ticks(self, symbol: str) -> None:
        self._require_symbol(symbol)
        self._tick_symbols.add(symbol)
        logger.info("Suscrito a ticks simulados de '%s'", symbol)

    async def subscribe_candles(self, symbol: str, granularity: int) -> None:
        self._require_symbol(symbol)
        timeframe = _GRANULARITY_TIMEFRAMES.get(granularity)
        if timeframe is None:
            raise FeedConnectivityError(f"Granularidad no soportada: {granularity}s")

        history = generate_candles(
            symbol, timeframe, self._history_count, self._prices[symbol], rng=self._rng,
        )
        for candle in history:
            await self._publish_candle(candle)
        self._building[(symbol, granularity)] = None
        self._tick_symbols.add(symbol)
        logger.info(
            "Suscrito a velas simuladas de '%s' (%ds, %d históricas)",
            symbol, granularity, len(history),
        )

    # ──────────────────────── Orders ────────────────────────────────────

    async def buy(self, order: BuyOrder) -> dict:
        self._require_symbol(order.symbol)
        if not self._connected:
            raise FeedConnectivityError("Feed simulado desconectado")
        self._orders += 1
        contract_id = f"SIM_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"
        logger.info("Orden simulada %s %s → %s", order.contract_type, order.symbol, contract_id)
        return {
            "contract_id": contract_id,
            "buy_price": order.amount,
            "longcode": f"Simulated {order.contract_type} on {order.symbol}",
        }

    async def sell(self, contract_id: str, price: float) -> dict:
        if not self._connected:
            raise FeedConnectivityError("Feed simulado desconectado")
        return {"contract_id": contract_id, "sold_for": price}

    # ──────────────────────── Tick loop ─────────────────────────────────

    async def _tick_loop(self) -> None:
        while self._connected:
            try:
                await asyncio.sleep(self._tick_interval)
                for symbol in sorted(self._tick_symbols):
                    await self.emit_tick(symbol)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Error en tick loop simulado: %s", e, exc_info=True)

    async def emit_tick(self, symbol: str, now: Optional[float] = None) -> PriceTick:
        """Avanza el random walk de un símbolo y publica el tick."""
        now = now if now is not None else time.time()
        price = self._prices[symbol] * (1 + self._rng.uniform(-TICK_VARIATION, TICK_VARIATION))
        self._prices[symbol] = price

        tick = PriceTick(
            symbol=symbol,
            price=price,
            bid=price - SPREAD / 2,
            ask=price + SPREAD / 2,
            timestamp=now,
        )
        self._ticks_sent += 1
        await self._event_bus.publish(FEED_TICK_TOPIC, tick)

        for key in list(self._building):
            if key[0] == symbol:
                await self._update_candle(key, price, now)
        return tick

    async def _update_candle(self, key: Tuple[str, int], price: float, now: float) -> None:
        symbol, granularity = key
        building = self._building.get(key)

        if building is not None and now >= building.close_time:
            await self._publish_candle(building.freeze())
            building = None

        if building is None:
            open_time = math.floor(now / granularity) * granularity
            building = _BuildingCandle(
                symbol=symbol,
                timeframe=_GRANULARITY_TIMEFRAMES[granularity],
                open_time=open_time,
                close_time=open_time + granularity,
            )
            self._building[key] = building
        building.update(price)

    async def _publish_candle(self, candle: Candle) -> None:
        self._candles_sent += 1
        await self._event_bus.publish(FEED_CANDLE_TOPIC, candle)

    def _require_symbol(self, symbol: str) -> None:
        if symbol not in self._prices:
            raise UnsupportedSymbolError(symbol)

    # ──────────────────────── Stats ─────────────────────────────────────

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def stats(self) -> dict:
        return {
            "provider": "simulated",
            "connected": self._connected,
            "ticks_sent": self._ticks_sent,
            "candles_sent": self._candles_sent,
            "orders": self._orders,
            "symbols": sorted(self._tick_symbols),
        }
