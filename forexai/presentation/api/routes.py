"""
ForexAI – API Routes (FastAPI)
==============================
Endpoints REST y WebSocket.

Endpoints disponibles:
  WS   /ws/market                    → notificaciones en tiempo real
  GET  /api/health                   → health check
  GET  /api/status                   → estado del pipeline y del feed
  GET  /api/prices                   → último precio de todos los símbolos
  GET  /api/prices/{symbol}          → último precio de un símbolo
  GET  /api/candles/{symbol}         → últimas N velas (ASC)
  POST /api/analysis/{symbol}        → forzar un análisis
  GET  /api/analysis/logs            → log de análisis reciente
  GET  /api/trades                   → trades de un usuario
  GET  /api/trades/active            → trades activos
  POST /api/trades/{trade_id}/close  → cerrar un trade
  GET  /api/settings/engine          → configuración del motor
  PUT  /api/settings/engine          → actualizar configuración del motor

Respuestas: {"status": "success", "data": ...} o
            {"status": "error", "message": ..., "code": ...}
"""

from __future__ import annotations

import json
from typing import Optional

from fastapi import APIRouter, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from forexai.domain.entities.candle import VALID_TIMEFRAMES
from forexai.domain.exceptions.domain_errors import (
    AnalysisInProgressError,
    BrokerExecutionError,
    ConfigValidationError,
    DomainError,
    FeedConnectivityError,
    InsufficientDataError,
    InvalidTradeError,
    UnsupportedSymbolError,
    ValidationError,
)
from forexai.shared.logging.logger import get_logger

logger = get_logger("api.routes")

router = APIRouter()

# Referencias a componentes inyectados desde main.py
_ws_manager = None
_pipeline = None
_price_cache = None
_market_data = None
_analysis_logs = None
_trades = None
_close_trade = None
_config_store = None
_event_bus = None

_ERROR_STATUS = {
    ConfigValidationError: 422,
    ValidationError: 400,
    InvalidTradeError: 400,
    UnsupportedSymbolError: 404,
    InsufficientDataError: 422,
    AnalysisInProgressError: 409,
    BrokerExecutionError: 502,
    FeedConnectivityError: 503,
}


class CloseTradeRequest(BaseModel):
    """Body para cerrar un trade."""
    exit_price: Optional[float] = Field(default=None, gt=0)
    user_id: Optional[str] = None


def init_routes(
    ws_manager=None,
    pipeline=None,
    price_cache=None,
    market_data=None,
    analysis_logs=None,
    trades=None,
    close_trade=None,
    config_store=None,
    event_bus=None,
) -> None:
    """Inyectar dependencias desde main.py al arrancar."""
    global _ws_manager, _pipeline, _price_cache, _market_data, _analysis_logs
    global _trades, _close_trade, _config_store, _event_bus
    _ws_manager = ws_manager
    _pipeline = pipeline
    _price_cache = price_cache
    _market_data = market_data
    _analysis_logs = analysis_logs
    _trades = trades
    _close_trade = close_trade
    _config_store = config_store
    _event_bus = event_bus


# ─── Helpers ───────────────────────────────────────────────────────────

def success(data) -> dict:
    return {"status": "success", "data": data}


def error_response(message: str, status_code: int = 400, code: str = "ERROR", **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "message": message, "code": code, **extra},
    )


def status_for(error: DomainError) -> int:
    for cls in type(error).__mro__:
        if cls in _ERROR_STATUS:
            return _ERROR_STATUS[cls]
    return 400


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Mapea DomainError → {"status": "error", ...} con su HTTP status."""
    status_code = status_for(exc)
    logger.warning("%s %s → %d %s", request.method, request.url.path, status_code, exc.message)
    extra = {"errors": exc.errors} if isinstance(exc, ConfigValidationError) else {}
    return error_response(exc.message, status_code, exc.code, **extra)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Errores de query/path/body de FastAPI con el mismo sobre que el resto."""
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    logger.warning("%s %s → 422 %s", request.method, request.url.path, errors)
    return error_response("Parámetros inválidos", 422, "VALIDATION_ERROR", errors=errors)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Error no controlado en %s %s", request.method, request.url.path)
    return error_response("Error interno del servidor", 500, "INTERNAL_ERROR")


def _not_ready() -> JSONResponse:
    return error_response("Servicio no inicializado", 503, "NOT_READY")


# ─── WebSocket endpoint ────────────────────────────────────────────────

@router.websocket("/ws/market")
async def market_stream(websocket: WebSocket) -> None:
    """
    El frontend se conecta aquí para recibir ticks, velas, análisis,
    trades y estado de conexión. El broadcast lo maneja WebSocketManager;
    este handler solo gestiona el ciclo de vida de la conexión.
    """
    if _ws_manager is None:
        await websocket.close(code=1011, reason="Server not ready")
        return

    await _ws_manager.connect(websocket)
    try:
        while True:
            try:
                data = await websocket.receive_text()
                logger.debug("Mensaje de cliente WS: %s", data[:100])
            except WebSocketDisconnect:
                break
    finally:
        _ws_manager.disconnect(websocket)


# ─── Estado ────────────────────────────────────────────────────────────

@router.get("/api/health")
async def health_check() -> dict:
    """Health check para monitoreo."""
    return success({"service": "forexai", "status": "ok"})


@router.get("/api/status")
async def system_status():
    """Estado del pipeline, feed, bus y clientes WS."""
    if _pipeline is None:
        return _not_ready()
    return success({
        "pipeline": _pipeline.stats,
        "event_bus": _event_bus.stats if _event_bus else {},
        "ws_clients": _ws_manager.client_count if _ws_manager else 0,
        "symbols": _price_cache.symbols if _price_cache else [],
    })


# ─── Precios y velas ───────────────────────────────────────────────────

@router.get("/api/prices")
async def get_prices():
    if _price_cache is None:
        return _not_ready()
    return success({symbol: snap.to_dict() for symbol, snap in _price_cache.snapshot().items()})


@router.get("/api/prices/{symbol}")
async def get_price(symbol: str):
    if _price_cache is None:
        return _not_ready()
    snapshot = _price_cache.get(symbol.upper())
    if snapshot is None:
        return error_response(f"Sin precio para {symbol.upper()}", 404, "NOT_FOUND")
    return success(snapshot.to_dict())


@router.get("/api/candles/{symbol}")
async def get_candles(
    symbol: str,
    timeframe: str = "5m",
    limit: int = Query(default=100, ge=1, le=1000),
):
    """Últimas N velas de (symbol, timeframe), más antigua primero."""
    if _market_data is None:
        return _not_ready()
    if timeframe not in VALID_TIMEFRAMES:
        raise ValidationError(
            f"Timeframe inválido: {timeframe}. Opciones: {list(VALID_TIMEFRAMES)}",
            field="timeframe", value=timeframe,
        )
    candles = await _market_data.get_recent_candles(symbol.upper(), timeframe, limit)
    return success({
        "symbol": symbol.upper(),
        "timeframe": timeframe,
        "count": len(candles),
        "candles": [c.to_dict() for c in candles],
    })


# ─── Análisis ──────────────────────────────────────────────────────────

@router.post("/api/analysis/{symbol}")
async def force_analysis(symbol: str, timeframe: Optional[str] = None):
    """Análisis manual. 409 si ya hay uno en curso para el símbolo."""
    if _pipeline is None:
        return _not_ready()
    if timeframe is not None and timeframe not in VALID_TIMEFRAMES:
        raise ValidationError(f"Timeframe inválido: {timeframe}", field="timeframe", value=timeframe)
    decision = await _pipeline.force_analysis(symbol.upper(), timeframe)
    return success(decision.to_dict())


@router.get("/api/analysis/logs")
async def analysis_logs(
    symbol: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=500),
):
    if _analysis_logs is None:
        return _not_ready()
    entries = await _analysis_logs.list_recent(symbol.upper() if symbol else None, limit)
    return success([e.to_dict() for e in entries])


# ─── Trades ────────────────────────────────────────────────────────────

@router.get("/api/trades")
async def user_trades(user_id: str, limit: int = Query(default=50, ge=1, le=500)):
    if _trades is None:
        return _not_ready()
    trades = await _trades.list_by_user(user_id, limit)
    return success([t.to_dict() for t in trades])


@router.get("/api/trades/active")
async def active_trades(user_id: Optional[str] = None):
    if _trades is None:
        return _not_ready()
    trades = await _trades.list_active(user_id)
    return success([t.to_dict() for t in trades])


@router.post("/api/trades/{trade_id}/close")
async def close_trade(trade_id: str, body: Optional[CloseTradeRequest] = None):
    if _close_trade is None:
        return _not_ready()
    body = body or CloseTradeRequest()
    closed = await _close_trade.close(trade_id, exit_price=body.exit_price, user_id=body.user_id)
    return success(closed.to_dict())


# ─── Configuración del motor ───────────────────────────────────────────

@router.get("/api/settings/engine")
async def get_engine_settings():
    if _config_store is None:
        return _not_ready()
    return success(_config_store.get().model_dump())


@router.put("/api/settings/engine")
async def update_engine_settings(request: Request):
    """
    Actualización parcial. El payload completo se valida antes de
    aplicarse; si falla, la configuración vigente no cambia.
    """
    if _config_store is None:
        return _not_ready()
    try:
        payload = await request.json()
    except json.JSONDecodeError as e:
        raise ConfigValidationError(f"JSON inválido: {e.msg}") from e
    config = _config_store.update(payload)
    return success(config.model_dump())
