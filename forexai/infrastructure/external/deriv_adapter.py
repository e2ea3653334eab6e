"""
ForexAI – Deriv WebSocket Adapter
=================================
Implementación de IFeedClient sobre la API WebSocket de Deriv.

Publica en el EventBus:
  feed.tick    → PriceTick      (mensajes `tick`)
  feed.candle  → Candle         (`candles` históricas + `ohlc` en vivo)
  feed.status  → ConnectivityChanged (connected / disconnected / error)

REQUESTS:
- Cada request lleva un `req_id` y espera su respuesta en un Future.
- Timeout explícito (feed_request_timeout, 30s por defecto), leído en
  cada request para que los cambios de configuración apliquen. Un request
  vencido se elimina del mapa de pendientes y falla con
  FeedConnectivityError.
- Una desconexión falla todos los pendientes con FeedConnectivityError.

RECONEXIÓN:
- Este adaptador NO reconecta por sí mismo. Ante un cierre inesperado
  publica `disconnected` y la política de reintentos la decide el
  IngestionPipeline.

HEARTBEAT:
- Un task paralelo envía {"ping": 1} cada N segundos.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any, Callable, Dict, Optional

import websockets
from websockets.asyncio.client import ClientConnection

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
    BrokerExecutionError,
    FeedConnectivityError,
    UnsupportedSymbolError,
)
from forexai.domain.value_objects.tick import PriceTick
from forexai.shared.config.settings import TIMEFRAMES
from forexai.shared.logging.logger import get_logger

logger = get_logger("deriv_adapter")

# Par de mercado → símbolo Deriv
DERIV_SYMBOLS: Dict[str, str] = {
    "EURUSD": "frxEURUSD",
    "GBPUSD": "frxGBPUSD",
    "USDJPY": "frxUSDJPY",
    "AUDUSD": "frxAUDUSD",
    "USDCAD": "frxUSDCAD",
    "EURGBP": "frxEURGBP",
    "EURJPY": "frxEURJPY",
    "GBPJPY": "frxGBPJPY",
    "XAUUSD": "frxXAUUSD",
    "XAGUSD": "frxXAGUSD",
}
MARKET_SYMBOLS: Dict[str, str] = {v: k for k, v in DERIV_SYMBOLS.items()}

GRANULARITY_TIMEFRAMES: Dict[int, str] = {v: k for k, v in TIMEFRAMES.items()}

CANDLE_HISTORY_COUNT = 1000


class FeedRequestError(Exception):
    """Respuesta de error de la API de Deriv a un request concreto."""

    def __init__(self, message: str, code: str = "UnknownError"):
        self.message = message
        self.code = code
        super().__init__(f"[{code}] {message}")


def to_deriv_symbol(symbol: str) -> str:
    """
    Raises:
        UnsupportedSymbolError: par sin mapeo.
    """
    try:
        return DERIV_SYMBOLS[symbol]
    except KeyError:
        raise UnsupportedSymbolError(symbol) from None


class DerivAdapter(IFeedClient):
    """
    Cliente WebSocket asíncrono para Deriv.

    Ciclo de vida:
      1. connect()       → handshake (timeout) + listener + heartbeat
      2. subscribe_*()   → requests con req_id
      3. _listen()       → parsear mensajes y publicar en el EventBus
      4. disconnect()    → shutdown limpio (no publica `disconnected`)
    """

    def __init__(
        self,
        event_bus: IEventPublisher,
        app_id: str = "1089",
        ws_url: str = "wss://ws.binaryws.com/websockets/v3",
        api_token: str = "",
        connect_timeout: float = 10.0,
        request_timeout: float = 30.0,
        heartbeat_interval: float = 30.0,
        timeout_provider: Optional[Callable[[], float]] = None,
    ) -> None:
        self._event_bus = event_bus
        self._app_id = app_id
        self._ws_url = ws_url
        self._api_token = api_token
        self._connect_timeout = connect_timeout
        self._request_timeout = request_timeout
        # Si se da, manda sobre request_timeout y se consulta en cada request
        self._timeout_provider = timeout_provider
        self._heartbeat_interval = heartbeat_interval

        self._ws: Optional[ClientConnection] = None
        self._connected = False
        self._closing = False
        self._listen_task: Optional[asyncio.Task] = None
        self._heartbeat_task: Optional[asyncio.Task] = None

        self._req_id = 0
        self._pending: Dict[int, asyncio.Future] = {}
        self._subscriptions: Dict[str, Optional[str]] = {}

        # Estadísticas de monitoreo
        self._ticks_received: int = 0
        self._candles_received: int = 0
        self._last_tick_time: float = 0.0
        self._connected_since: float = 0.0

    @property
    def url(self) -> str:
        return f"{self._ws_url}?app_id={self._app_id}"

    @property
    def request_timeout(self) -> float:
        """Timeout vigente en segundos para cada request."""
        if self._timeout_provider is not None:
            return self._timeout_provider()
        return self._request_timeout

    # ════════════════════════════════════════════════════════════════
    #  Lifecycle
    # ════════════════════════════════════════════════════════════════

    async def connect(self) -> None:
        if self.is_connected:
            logger.warning("DerivAdapter ya está conectado, ignorando connect()")
            return

        logger.info("Conectando a Deriv: %s", self.url)
        try:
            ws = await asyncio.wait_for(
                websockets.connect(
                    self.url,
                    ping_interval=None,   # Gestionamos heartbeat manualmente
                    ping_timeout=None,
                    close_timeout=10,
                    max_size=2**20,       # 1 MB máximo por mensaje
                ),
                timeout=self._connect_timeout,
            )
        except asyncio.TimeoutError:
            raise FeedConnectivityError(
                f"Timeout ({self._connect_timeout:.0f}s) conectando a Deriv"
            ) from None
        except (OSError, websockets.exceptions.WebSocketException) as e:
            raise FeedConnectivityError(f"Error conectando a Deriv: {e}") from e

        self._ws = ws
        self._connected = True
        self._closing = False
        self._connected_since = time.time()
        self._listen_task = asyncio.create_task(self._listen(ws), name="deriv-listen")
        self._heartbeat_task = asyncio.create_task(
            self._heartbeat(ws), name="deriv-heartbeat",
        )
        logger.info("✓ Conectado a Deriv WebSocket")

        if self._api_token:
            await self._authorize()

        await self._publish_status("connected")

    async def disconnect(self) -> None:
        """Shutdown limpio: cerrar WS y cancelar tasks."""
        self._closing = True
        ws = self._ws

        if self._heartbeat_task and not self._heartbeat_task.done():
            self._heartbeat_task.cancel()

        if ws is not None:
            try:
                await ws.close()
            except websockets.exceptions.WebSocketException as e:
                logger.warning("Error cerrando WebSocket: %s", e)

        if self._listen_task and not self._listen_task.done():
            self._listen_task.cancel()
            try:
                await self._listen_task
            except asyncio.CancelledError:
                pass

        self._reset_connection("Cliente desconectado")
        logger.info(
            "DerivAdapter desconectado. Ticks: %d, velas: %d",
            self._ticks_received, self._candles_received,
        )

    async def _authorize(self) -> None:
        try:
            await self._request({"authorize": self._api_token})
            logger.info("✓ Sesión Deriv autorizada")
        except FeedRequestError as e:
            # Sin autorización el feed sigue sirviendo; solo fallan las órdenes live
            logger.error("Autorización Deriv rechazada: %s", e)

    # ════════════════════════════════════════════════════════════════
    #  Subscriptions
    # ════════════════════════════════════════════════════════════════

    async def subscribe_ticks(self, symbol: str) -> None:
        deriv_symbol = to_deriv_symbol(symbol)
        try:
            response = await self._request({"ticks": deriv_symbol, "subscribe": 1})
        except FeedRequestError as e:
            logger.warning("Suscripción a ticks de %s rechazada: %s", symbol, e)
            return
        self._subscriptions[f"tick_{symbol}"] = (response.get("subscription") or {}).get("id")
        logger.info("Suscrito a ticks de '%s' (%s)", symbol, deriv_symbol)

    async def subscribe_candles(self, symbol: str, granularity: int) -> None:
        deriv_symbol = to_deriv_symbol(symbol)
        if granularity not in GRANULARITY_TIMEFRAMES:
            raise FeedConnectivityError(f"Granularidad no soportada: {granularity}s")
        try:
            response = await self._request({
                "ticks_history": deriv_symbol,
                "adjust_start_time": 1,
                "count": CANDLE_HISTORY_COUNT,
                "end": "latest",
                "granularity": granularity,
                "style": "candles",
                "subscribe": 1,
            })
        except FeedRequestError as e:
            logger.warning("Suscripción a velas %s/%ds rechazada: %s", symbol, granularity, e)
            return
        self._subscriptions[f"candles_{symbol}_{granularity}"] = (
            (response.get("subscription") or {}).get("id")
        )
        logger.info("Suscrito a velas de '%s' (%ds)", symbol, granularity)

    # ════════════════════════════════════════════════════════════════
    #  Orders
    # ════════════════════════════════════════════════════════════════

    async def buy(self, order: BuyOrder) -> Dict[str, Any]:
        if not self._api_token:
            raise BrokerExecutionError(
                "Token API requerido para operar en live", symbol=order.symbol,
            )
        deriv_symbol = to_deriv_symbol(order.symbol)
        payload = {
            "buy": 1,
            "price": order.amount,
            "parameters": {
                "amount": order.amount,
                "basis": order.basis,
                "contract_type": order.contract_type,
                "currency": order.currency,
                "duration": order.duration,
                "duration_unit": order.duration_unit,
                "symbol": deriv_symbol,
            },
        }
        try:
            response = await self._request(payload)
        except FeedRequestError as e:
            raise BrokerExecutionError(
                f"Orden rechazada por Deriv: {e.message}",
                symbol=order.symbol, broker_code=e.code,
            ) from e

        receipt = response.get("buy") or {}
        logger.info(
            "Orden %s %s ejecutada: contract_id=%s price=%s",
            order.contract_type, order.symbol,
            receipt.get("contract_id"), receipt.get("buy_price"),
        )
        return {
            "contract_id": receipt.get("contract_id"),
            "transaction_id": receipt.get("transaction_id"),
            "buy_price": receipt.get("buy_price"),
            "longcode": receipt.get("longcode"),
        }

    async def sell(self, contract_id: str, price: float) -> Dict[str, Any]:
        if not self._api_token:
            raise BrokerExecutionError("Token API requerido para operar en live")
        try:
            response = await self._request({"sell": contract_id, "price": price})
        except FeedRequestError as e:
            raise BrokerExecutionError(
                f"Venta rechazada por Deriv: {e.message}", broker_code=e.code,
            ) from e
        receipt = response.get("sell") or {}
        logger.info("Contrato %s vendido: %s", contract_id, receipt.get("sold_for"))
        return receipt

    # ════════════════════════════════════════════════════════════════
    #  Request / Response
    # ════════════════════════════════════════════════════════════════

    async def _request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Envía un request con req_id y espera su respuesta.

        Raises:
            FeedConnectivityError: sin conexión, envío fallido o timeout.
            FeedRequestError: la API respondió con `error`.
        """
        if not self.is_connected:
            raise FeedConnectivityError("No conectado a Deriv")

        self._req_id += 1
        req_id = self._req_id
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[req_id] = future

        try:
            await self._ws.send(json.dumps({**payload, "req_id": req_id}))
            timeout = self.request_timeout
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            raise FeedConnectivityError(
                f"Timeout ({timeout:g}s) esperando respuesta de Deriv "
                f"(req_id={req_id})"
            ) from None
        except websockets.exceptions.ConnectionClosed as e:
            raise FeedConnectivityError(f"Conexión cerrada durante request: {e}") from e
        finally:
            self._pending.pop(req_id, None)

    # ════════════════════════════════════════════════════════════════
    #  Listener
    # ════════════════════════════════════════════════════════════════

    async def _listen(self, ws: ClientConnection) -> None:
        """Loop de escucha hasta desconexión."""
        reason = "Conexión cerrada"
        try:
            async for raw_msg in ws:
                try:
                    data = json.loads(raw_msg)
                except json.JSONDecodeError:
                    logger.warning("Mensaje no-JSON recibido, ignorando")
                    continue
                try:
                    await self.handle_message(data)
                except (AttributeError, KeyError, TypeError, ValueError) as e:
                    logger.warning(
                        "Mensaje malformado ignorado (%s: %s): %s",
                        type(e).__name__, e, str(raw_msg)[:200],
                    )
        except websockets.exceptions.ConnectionClosed as e:
            reason = f"Conexión cerrada: {e}"
            logger.warning(reason)
        except OSError as e:
            reason = f"Error de red: {e}"
            logger.error(reason)
        except Exception as e:
            # Un listener muerto con el socket abierto dejaría el feed mudo
            reason = f"Error fatal en listener: {e}"
            logger.exception("Listener de Deriv terminado por error inesperado")
            try:
                await ws.close()
            except websockets.exceptions.WebSocketException as close_error:
                logger.warning("Error cerrando WebSocket: %s", close_error)
        finally:
            expected = self._closing
            self._reset_connection(reason)

        if not expected:
            await self._publish_status("disconnected", reason)

    async def handle_message(self, data: Dict[str, Any]) -> None:
        """Despacha un mensaje ya decodificado de la API."""
        req_id = data.get("req_id")

        # ── Errores del API ──
        if "error" in data:
            error = data["error"] or {}
            code = error.get("code", "UnknownError")
            message = error.get("message", "sin detalle")
            logger.error(
                "Error de Deriv API [%s]: %s | echo_req=%s",
                code, message, str(data.get("echo_req", {}))[:200],
            )
            future = self._pending.get(req_id) if req_id is not None else None
            if future is not None and not future.done():
                future.set_exception(FeedRequestError(message, code))
            else:
                await self._publish_status("error", f"[{code}] {message}")
            return

        # ── Respuesta a un request pendiente ──
        if req_id is not None:
            future = self._pending.get(req_id)
            if future is not None and not future.done():
                future.set_result(data)

        if "pong" in data or data.get("msg_type") == "ping":
            return

        # ── Tick de precio ──
        if data.get("tick"):
            await self._on_tick(data["tick"])
            return

        # ── Velas: histórico + streaming ──
        echo = data.get("echo_req") or {}
        if data.get("candles"):
            for raw in data["candles"]:
                await self._on_candle(
                    raw, echo.get("ticks_history"), echo.get("granularity"), raw.get("epoch"),
                )
        if data.get("ohlc"):
            ohlc = data["ohlc"]
            await self._on_candle(
                ohlc,
                ohlc.get("symbol", echo.get("ticks_history")),
                ohlc.get("granularity", echo.get("granularity")),
                ohlc.get("open_time"),
            )

    async def _on_tick(self, raw: Dict[str, Any]) -> None:
        symbol = MARKET_SYMBOLS.get(raw.get("symbol", ""))
        if symbol is None:
            logger.debug("Tick de símbolo no mapeado: %s", raw.get("symbol"))
            return

        quote = float(raw["quote"])
        tick = PriceTick(
            symbol=symbol,
            price=quote,
            bid=float(raw["bid"]) if raw.get("bid") is not None else None,
            ask=float(raw["ask"]) if raw.get("ask") is not None else None,
            timestamp=float(raw.get("epoch", time.time())),
        )
        self._ticks_received += 1
        self._last_tick_time = tick.timestamp
        await self._event_bus.publish(FEED_TICK_TOPIC, tick)

    async def _on_candle(
        self,
        raw: Dict[str, Any],
        deriv_symbol: Optional[str],
        granularity: Any,
        open_time: Any,
    ) -> None:
        symbol = MARKET_SYMBOLS.get(deriv_symbol or "")
        try:
            timeframe = GRANULARITY_TIMEFRAMES.get(int(granularity))
        except (TypeError, ValueError):
            timeframe = None
        if symbol is None or timeframe is None or open_time is None:
            logger.debug(
                "Vela ignorada (symbol=%s granularity=%s)", deriv_symbol, granularity,
            )
            return

        candle = Candle(
            symbol=symbol,
            timeframe=timeframe,
            timestamp=float(open_time),
            open=float(raw["open"]),
            high=float(raw["high"]),
            low=float(raw["low"]),
            close=float(raw["close"]),
        )
        self._candles_received += 1
        await self._event_bus.publish(FEED_CANDLE_TOPIC, candle)

    # ════════════════════════════════════════════════════════════════
    #  Heartbeat / helpers
    # ════════════════════════════════════════════════════════════════

    async def _heartbeat(self, ws: ClientConnection) -> None:
        """Ping periódico; si el envío falla, el listener detecta la caída."""
        try:
            while self._connected:
                await asyncio.sleep(self._heartbeat_interval)
                try:
                    await ws.send(json.dumps({"ping": 1}))
                except websockets.exceptions.ConnectionClosed:
                    logger.warning("Fallo al enviar heartbeat, conexión probablemente perdida")
                    break
        except asyncio.CancelledError:
            pass  # Shutdown limpio

    def _reset_connection(self, reason: str) -> None:
        self._connected = False
        self._ws = None
        if self._heartbeat_task and not self._heartbeat_task.done():
            self._heartbeat_task.cancel()
        for future in self._pending.values():
            if not future.done():
                future.set_exception(FeedConnectivityError(reason))
        self._pending.clear()

    async def _publish_status(self, state: str, reason: str = "") -> None:
        await self._event_bus.publish(
            FEED_STATUS_TOPIC, ConnectivityChanged(state=state, reason=reason),
        )

    # ════════════════════════════════════════════════════════════════
    #  Stats
    # ════════════════════════════════════════════════════════════════

    @property
    def is_connected(self) -> bool:
        return self._ws is not None and self._connected

    @property
    def pending_requests(self) -> int:
        return len(self._pending)

    @property
    def stats(self) -> dict:
        """Estadísticas del adaptador para monitoreo."""
        return {
            "provider": "deriv",
            "connected": self.is_connected,
            "ticks_received": self._ticks_received,
            "candles_received": self._candles_received,
            "last_tick_time": self._last_tick_time,
            "connected_since": self._connected_since,
            "pending_requests": len(self._pending),
            "subscriptions": sorted(self._subscriptions),
        }
