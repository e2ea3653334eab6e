"""
ForexAI – Main Application Entry Point
======================================
Orquesta el núcleo: feed → ingestión → análisis → ejecución.

ARQUITECTURA DE ARRANQUE:
  1. Configurar logging
  2. Crear el contenedor (EventBus, feed, repositorios, casos de uso)
  3. FastAPI lifespan startup:
     a. Base de datos (si db_enabled) + creación de tablas
     b. WebSocketManager (broadcast a frontend)
     c. IngestionPipeline (consumidores + conexión al feed)
  4. Shutdown en orden inverso

FLUJO DE DATOS:
  Feed (Deriv / simulado) → EventBus(feed.*) → IngestionPipeline
       → PriceCache ─────────────────────────▸ tick_update
       → Market Data Store ──────────────────▸ candle_update
       → cada N velas: AnalyzeMarket → Decision ▸ ai_analysis
            → AutoTrade → ExecuteTrade → Trade ▸ auto_trade_executed
  EventBus(notificaciones) → WebSocketManager → Frontend

  uvicorn forexai.main:app --host 0.0.0.0 --port 8888
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from forexai import __version__
from forexai.container import Container, init_container
from forexai.domain.exceptions.domain_errors import DomainError
from forexai.presentation.api.routes import (
    domain_error_handler,
    init_routes,
    request_validation_handler,
    router,
    unhandled_error_handler,
)
from forexai.shared.logging.logger import get_logger, setup_logging

# ─── Logging ────────────────────────────────────────────────────────────
setup_logging()
logger = get_logger("main")


def create_app(container: Optional[Container] = None) -> FastAPI:
    """Construye la app FastAPI sobre un contenedor."""
    container = container or init_container()
    settings = container.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle de la aplicación."""
        cfg = container.config_store.get()
        logger.info("=" * 60)
        logger.info("  ForexAI Trading Core v%s", __version__)
        logger.info("  Feed: %s", settings.feed_mode)
        logger.info("  Símbolos: %s", ", ".join(settings.symbols))
        logger.info("  Granularidades: %s", ", ".join(f"{g}s" for g in settings.candle_granularities))
        logger.info("  Análisis: cada %d velas, ventana %d (mín. %d)",
                    cfg.candle_sampling_interval, cfg.analysis_window, cfg.min_candles)
        logger.info("  Umbrales: decisión %.2f, auto-trade %.2f",
                    cfg.confidence_threshold, cfg.auto_trade_confidence_threshold)
        logger.info("=" * 60)

        # Base de datos (opcional)
        db_manager = container.db_manager
        if db_manager is not None:
            await db_manager.initialize()
            await db_manager.create_all()
            logger.info("  Database: conectada")
        else:
            logger.info("  Database: deshabilitada (repositorios en memoria)")

        await container.ws_manager.start()
        await container.ingestion_pipeline.start()
        logger.info("✓ Todos los componentes iniciados correctamente")

        yield  # ← La app está corriendo aquí

        # ── SHUTDOWN ──
        logger.info("Iniciando shutdown...")
        await container.ingestion_pipeline.stop()
        await container.ws_manager.stop()
        await container.event_bus.unsubscribe_all()
        if db_manager is not None:
            await db_manager.close()
        logger.info("✓ Shutdown completo")

    app = FastAPI(
        title="ForexAI Trading Core",
        description="Ingestión de mercado FOREX, análisis técnico, decisión y ejecución",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS para frontend local
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
    app.include_router(router)

    # Inyectar dependencias al router (desde container)
    init_routes(
        ws_manager=container.ws_manager,
        pipeline=container.ingestion_pipeline,
        price_cache=container.price_cache,
        market_data=container.market_data_repository,
        analysis_logs=container.analysis_log_repository,
        trades=container.trade_repository,
        close_trade=container.close_trade,
        config_store=container.config_store,
        event_bus=container.event_bus,
    )
    app.state.container = container
    return app


app = create_app()


def run() -> None:
    """Arranca uvicorn con host/puerto de settings."""
    import uvicorn

    from forexai.shared.config.settings import settings

    uvicorn.run("forexai.main:app", host=settings.host, port=settings.port, reload=settings.debug)


if __name__ == "__main__":
    run()
