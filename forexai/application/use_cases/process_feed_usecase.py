"""
ForexAI – Ingestion Pipeline
============================
Consume el feed (ticks, velas, estado de conexión) desde el EventBus,
mantiene el PriceCache, persiste velas y dispara análisis muestreados.

FLUJO:
  EventBus (feed.tick)    ──▸ PriceCache.update() ──▸ notify tick_update
  EventBus (feed.candle)  ──▸ Market Data Store (upsert)
                          ──▸ notify candle_update
                          ──▸ cada N velas: análisis del símbolo
                                 ──▸ notify ai_analysis
                                 ──▸ confianza > umbral auto → AutoTrade
  EventBus (feed.status)  ──▸ notify connection_status
                          ──▸ disconnected → reconexión acotada

ORDEN:
- Un consumidor por tópico, drenando su cola en orden: los ticks de un
  mismo símbolo se aplican en orden de llegada.

ANÁLISIS:
- A lo sumo UN análisis en vuelo por símbolo. Uno programado mientras
  hay otro en curso se descarta (log). Un force_analysis concurrente
  se rechaza con AnalysisInProgressError: nunca cancela al que corre.

RECONEXIÓN:
- Ante `disconnected`: hasta max_reconnect_attempts intentos, cada uno
  precedido por un delay FIJO (reconnect_delay_ms). Agotados los
  intentos se emite connection_fatal y no se reintenta más.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, List, Optional, Sequence, Set

from forexai.application.ports.event_publisher import (
    AI_ANALYSIS,
    CANDLE_UPDATE,
    CONNECTION_FATAL,
    CONNECTION_STATUS,
    TICK_UPDATE,
    IEventBus,
)
from forexai.application.ports.market_data_provider import (
    FEED_CANDLE_TOPIC,
    FEED_STATUS_TOPIC,
    FEED_TICK_TOPIC,
    IFeedClient,
)
from forexai.application.state.engine_config_store import EngineConfigStore
from forexai.application.state.price_cache import PriceCache
from forexai.application.use_cases.analyze_market_usecase import AnalyzeMarketUseCase
from forexai.application.use_cases.auto_trade_usecase import AutoTradeUseCase
from forexai.domain.entities.candle import Candle
from forexai.domain.entities.decision import Decision
from forexai.domain.events.domain_events import ConnectivityChanged
from forexai.domain.exceptions.domain_errors import (
    AnalysisInProgressError,
    FeedConnectivityError,
    UnsupportedSymbolError,
)
from forexai.domain.repositories.market_data_repository import IMarketDataRepository
from forexai.domain.value_objects.tick import PriceTick
from forexai.shared.logging.logger import get_logger

logger = get_logger("ingestion_pipeline")

SleepFn = Callable[[float], Awaitable[None]]


class IngestionPipeline:
    """Pipeline de ingestión del feed de mercado."""

    def __init__(
        self,
        event_bus: IEventBus,
        feed_client: IFeedClient,
        price_cache: PriceCache,
        market_data: IMarketDataRepository,
        analyze_market: AnalyzeMarketUseCase,
        auto_trader: AutoTradeUseCase,
        config_store: EngineConfigStore,
        symbols: Sequence[str] = (),
        granularities: Sequence[int] = (60, 300),
        default_timeframe: str = "5m",
        sleep: SleepFn = asyncio.sleep,
    ):
        self._bus = event_bus
        self._feed = feed_client
        self._prices = price_cache
        self._market_data = market_data
        self._analyze_market = analyze_market
        self._auto_trader = auto_trader
        self._config_store = config_store
        self._symbols = list(symbols)
        self._granularities = list(granularities)
        self._default_timeframe = default_timeframe
        self._sleep = sleep

        self._running = False
        self._consumer_tasks: List[asyncio.Task] = []
        self._analysis_tasks: Set[asyncio.Task] = set()
        self._in_flight: Set[str] = set()
        self._reconnect_task: Optional[asyncio.Task] = None

        # Estado de conexión
        self._connection_state = "disconnected"
        self._reconnect_attempts = 0
        self._fatal_error: Optional[FeedConnectivityError] = None

        # Estadísticas de monitoreo
        self._ticks_received = 0
        self._candles_received = 0
        self._analysis_count = 0
        self._trades_executed = 0
        self._started_at: float = 0.0

    # ──────────────────────── Lifecycle ──────────────────────────────────

    async def start(self) -> None:
        """Suscribirse a los tópicos del feed, lanzar consumidores y conectar."""
        if self._running:
            logger.warning("IngestionPipeline ya está corriendo, ignorando start()")
            return

        self._running = True
        self._started_at = time.time()

        tick_queue = await self._bus.subscribe(FEED_TICK_TOPIC, "pipeline_ticks")
        candle_queue = await self._bus.subscribe(FEED_CANDLE_TOPIC, "pipeline_candles")
        status_queue = await self._bus.subscribe(FEED_STATUS_TOPIC, "pipeline_status")

        self._consumer_tasks = [
            asyncio.create_task(
                self._consume(tick_queue, self.handle_tick, "ticks"),
                name="pipeline-ticks",
            ),
            asyncio.create_task(
                self._consume(candle_queue, self.handle_candle, "candles"),
                name="pipeline-candles",
            ),
            asyncio.create_task(
                self._consume(status_queue, self.handle_status, "status"),
                name="pipeline-status",
            ),
        ]

        try:
            await self._connect_and_subscribe()
        except FeedConnectivityError as e:
            logger.error("Conexión inicial al feed fallida: %s", e.message)
            self._schedule_reconnect()

        logger.info(
            "IngestionPipeline iniciado: %d símbolos, granularidades %s",
            len(self._symbols), self._granularities,
        )

    async def stop(self) -> None:
        """Shutdown limpio: cancelar consumidores, reconexión y análisis."""
        self._running = False

        tasks = list(self._consumer_tasks) + list(self._analysis_tasks)
        if self._reconnect_task is not None:
            tasks.append(self._reconnect_task)
        for task in tasks:
            if not task.done():
                task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.warning("Task %s terminó con error: %s", task.get_name(), e)

        await self._feed.disconnect()
        logger.info(
            "IngestionPipeline detenido. Ticks: %d, velas: %d, análisis: %d",
            self._ticks_received, self._candles_received, self._analysis_count,
        )

    async def _consume(self, queue: asyncio.Queue, handler, name: str) -> None:
        """Loop de consumo de una cola; un error en un evento no detiene el loop."""
        while self._running:
            try:
                # Timeout para permitir shutdown limpio
                try:
                    item = await asyncio.wait_for(queue.get(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue
                await handler(item)
            except asyncio.CancelledError:
                logger.info("Consumidor '%s' cancelado", name)
                break
            except Exception as e:
                logger.error("Error procesando evento '%s': %s", name, e, exc_info=True)
                continue

    # ──────────────────────── Handlers ──────────────────────────────────

    async def handle_tick(self, tick: PriceTick) -> None:
        snapshot = self._prices.update(tick)
        self._ticks_received += 1
        await self._bus.publish(TICK_UPDATE, snapshot.to_dict())

    async def handle_candle(self, candle: Candle) -> None:
        stored = await self._market_data.upsert_candle(candle)
        self._candles_received += 1
        await self._bus.publish(CANDLE_UPDATE, stored.to_dict())

        interval = self._config_store.get().candle_sampling_interval
        if self._candles_received % interval == 0:
            self._schedule_analysis(candle.symbol, candle.timeframe)

    async def handle_status(self, event: ConnectivityChanged) -> None:
        previous = self._connection_state
        self._connection_state = event.state
        if event.state != previous:
            logger.info("Feed: %s → %s %s", previous, event.state, event.reason)
        await self._bus.publish(CONNECTION_STATUS, event.to_dict())

        if event.state == "disconnected" and self._running:
            self._schedule_reconnect()

    # ──────────────────────── Análisis ──────────────────────────────────

    def _schedule_analysis(self, symbol: str, timeframe: str) -> Optional[asyncio.Task]:
        if symbol in self._in_flight:
            logger.info("Análisis de %s ya en curso, se omite el muestreo", symbol)
            return None

        # Se marca ANTES de crear la task: no hay ventana para un segundo análisis
        self._in_flight.add(symbol)
        task = asyncio.create_task(
            self._run_analysis(symbol, timeframe), name=f"analysis-{symbol}",
        )
        self._analysis_tasks.add(task)
        task.add_done_callback(self._on_analysis_done)
        return task

    def _on_analysis_done(self, task: asyncio.Task) -> None:
        self._analysis_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Ciclo de análisis %s falló: %s", task.get_name(), error,
                         exc_info=error)

    async def force_analysis(self, symbol: str, timeframe: Optional[str] = None) -> Decision:
        """
        Análisis manual. Nunca se descarta en silencio: corre o lanza.

        Raises:
            AnalysisInProgressError: ya hay un análisis en vuelo para el símbolo.
        """
        if symbol in self._in_flight:
            raise AnalysisInProgressError(symbol)
        self._in_flight.add(symbol)
        return await self._run_analysis(symbol, timeframe or self._default_timeframe)

    async def _run_analysis(self, symbol: str, timeframe: str) -> Decision:
        try:
            decision = await self._analyze_market.analyze(symbol, timeframe)
            self._analysis_count += 1
            await self._bus.publish(AI_ANALYSIS, decision.to_dict())

            threshold = self._config_store.get().auto_trade_confidence_threshold
            if decision.is_actionable and decision.confidence > threshold:
                trades = await self._auto_trader.execute(symbol, decision)
                self._trades_executed += len(trades)
            return decision
        finally:
            self._in_flight.discard(symbol)

    # ──────────────────────── Conexión ──────────────────────────────────

    async def _connect_and_subscribe(self) -> None:
        await self._feed.connect()
        for symbol in self._symbols:
            try:
                await self._feed.subscribe_ticks(symbol)
                for granularity in self._granularities:
                    await self._feed.subscribe_candles(symbol, granularity)
            except UnsupportedSymbolError as e:
                logger.warning("Suscripción omitida: %s", e.message)

    def _schedule_reconnect(self) -> None:
        if self._fatal_error is not None:
            logger.warning("Feed en estado fatal, no se reintenta la conexión")
            return
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return
        self._reconnect_task = asyncio.create_task(self.reconnect(), name="feed-reconnect")

    async def reconnect(self) -> bool:
        """
        Reconexión acotada con delay fijo.

        Returns:
            True si se recuperó la conexión; False si se agotaron los intentos.
        """
        cfg = self._config_store.get()
        max_attempts = cfg.max_reconnect_attempts
        delay = cfg.reconnect_delay_seconds

        for attempt in range(1, max_attempts + 1):
            self._reconnect_attempts = attempt
            self._connection_state = "reconnecting"
            logger.info("Reconectando al feed en %.1fs (intento %d/%d)...",
                        delay, attempt, max_attempts)
            await self._bus.publish(
                CONNECTION_STATUS,
                ConnectivityChanged(state="reconnecting", attempt=attempt).to_dict(),
            )
            await self._sleep(delay)

            try:
                await self._connect_and_subscribe()
            except FeedConnectivityError as e:
                logger.warning("Intento %d/%d fallido: %s", attempt, max_attempts, e.message)
                continue

            self._connection_state = "connected"
            self._reconnect_attempts = 0
            logger.info("✓ Feed reconectado en el intento %d", attempt)
            return True

        self._fatal_error = FeedConnectivityError(
            f"Feed inalcanzable tras {max_attempts} intentos", attempts=max_attempts,
        )
        self._connection_state = "failed"
        logger.error(self._fatal_error.message)
        await self._bus.publish(
            CONNECTION_FATAL,
            ConnectivityChanged(
                state="failed", reason=self._fatal_error.message, attempt=max_attempts,
            ).to_dict(),
        )
        return False

    # ──────────────────────── Stats ─────────────────────────────────────

    @property
    def connection_state(self) -> str:
        return self._connection_state

    @property
    def fatal_error(self) -> Optional[FeedConnectivityError]:
        return self._fatal_error

    @property
    def in_flight(self) -> frozenset[str]:
        return frozenset(self._in_flight)

    @property
    def stats(self) -> dict:
        """Estadísticas del pipeline para monitoreo."""
        return {
            "running": self._running,
            "connection_state": self._connection_state,
            "reconnect_attempts": self._reconnect_attempts,
            "fatal_error": self._fatal_error.message if self._fatal_error else None,
            "ticks_received": self._ticks_received,
            "candles_received": self._candles_received,
            "analysis_count": self._analysis_count,
            "trades_executed": self._trades_executed,
            "analyses_in_flight": sorted(self._in_flight),
            "uptime": time.time() - self._started_at if self._started_at else 0.0,
            "feed": self._feed.stats,
        }
