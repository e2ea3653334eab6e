"""
ForexAI – Dependency Injection Container
========================================
Contenedor que gestiona las instancias de servicios, repositorios y
casos de uso.

Vive en la capa más externa y es el único lugar donde se crean
dependencias concretas:

- feed_mode = "deriv"      → DerivAdapter      | "simulated" → SimulatedFeed
- db_enabled = True        → repositorios SQL  | False       → en memoria
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from forexai.application.ports.event_publisher import IEventBus
from forexai.application.ports.market_data_provider import IFeedClient
from forexai.application.state.engine_config_store import EngineConfigStore
from forexai.application.state.price_cache import PriceCache
from forexai.application.use_cases.analyze_market_usecase import AnalyzeMarketUseCase
from forexai.application.use_cases.auto_trade_usecase import AutoTradeUseCase
from forexai.application.use_cases.close_trade_usecase import CloseTradeUseCase
from forexai.application.use_cases.execute_trade_usecase import ExecuteTradeUseCase
from forexai.application.use_cases.process_feed_usecase import IngestionPipeline
from forexai.domain.repositories.analysis_log_repository import IAnalysisLogRepository
from forexai.domain.repositories.market_data_repository import IMarketDataRepository
from forexai.domain.repositories.trade_repository import ITradeRepository
from forexai.domain.repositories.user_repository import IUserRepository
from forexai.infrastructure.persistence.database import DatabaseManager
from forexai.presentation.websocket.websocket_manager import WebSocketManager
from forexai.shared.config.settings import Settings


@dataclass
class Container:
    """
    Contenedor de Inyección de Dependencias.

    Cada dependencia se crea de forma perezosa la primera vez que se pide
    y se reutiliza después (una instancia por contenedor).
    """

    # Configuración
    settings: Settings = field(default_factory=Settings)

    # Infraestructura
    _event_bus: Optional[IEventBus] = None
    _feed_client: Optional[IFeedClient] = None
    _db_manager: Optional[DatabaseManager] = None

    # Repositorios
    _market_data_repository: Optional[IMarketDataRepository] = None
    _trade_repository: Optional[ITradeRepository] = None
    _analysis_log_repository: Optional[IAnalysisLogRepository] = None
    _user_repository: Optional[IUserRepository] = None

    # Estado
    _price_cache: Optional[PriceCache] = None
    _config_store: Optional[EngineConfigStore] = None

    # Casos de uso
    _analyze_market: Optional[AnalyzeMarketUseCase] = None
    _execute_trade: Optional[ExecuteTradeUseCase] = None
    _auto_trade: Optional[AutoTradeUseCase] = None
    _close_trade: Optional[CloseTradeUseCase] = None
    _ingestion_pipeline: Optional[IngestionPipeline] = None

    # Presentación
    _ws_manager: Optional[WebSocketManager] = None

    # ==================== Infraestructura ====================

    @property
    def event_bus(self) -> IEventBus:
        if self._event_bus is None:
            from forexai.infrastructure.external.event_bus_adapter import EventBus
            self._event_bus = EventBus(self.settings.event_bus_max_queue_size)
        return self._event_bus

    @property
    def feed_client(self) -> IFeedClient:
        """DerivAdapter o SimulatedFeed según `feed_mode`."""
        if self._feed_client is None:
            s = self.settings
            if s.feed_mode == "deriv":
                from forexai.infrastructure.external.deriv_adapter import DerivAdapter
                self._feed_client = DerivAdapter(
                    self.event_bus,
                    app_id=s.deriv_app_id,
                    ws_url=s.deriv_ws_url,
                    api_token=s.deriv_api_token,
                    connect_timeout=s.deriv_connect_timeout,
                    timeout_provider=lambda: self.config_store.get().feed_request_timeout,
                    heartbeat_interval=s.ws_heartbeat_interval,
                )
            else:
                from forexai.infrastructure.external.simulated_feed import SimulatedFeed
                self._feed_client = SimulatedFeed(
                    self.event_bus,
                    tick_interval=s.simulation_tick_interval,
                    history_count=s.simulation_history_candles,
                )
        return self._feed_client

    @property
    def db_manager(self) -> Optional[DatabaseManager]:
        """None si la persistencia SQL está deshabilitada."""
        if not self.settings.db_enabled:
            return None
        if self._db_manager is None:
            self._db_manager = DatabaseManager(self.settings)
        return self._db_manager

    # ==================== Repositorios ====================

    @property
    def market_data_repository(self) -> IMarketDataRepository:
        if self._market_data_repository is None:
            from forexai.infrastructure.persistence.repositories import (
                InMemoryMarketDataRepository,
                MarketDataRepositoryImpl,
            )
            db = self.db_manager
            self._market_data_repository = (
                MarketDataRepositoryImpl(db) if db else InMemoryMarketDataRepository()
            )
        return self._market_data_repository

    @property
    def trade_repository(self) -> ITradeRepository:
        if self._trade_repository is None:
            from forexai.infrastructure.persistence.repositories import (
                InMemoryTradeRepository,
                TradeRepositoryImpl,
            )
            db = self.db_manager
            self._trade_repository = TradeRepositoryImpl(db) if db else InMemoryTradeRepository()
        return self._trade_repository

    @property
    def analysis_log_repository(self) -> IAnalysisLogRepository:
        if self._analysis_log_repository is None:
            from forexai.infrastructure.persistence.repositories import (
                AnalysisLogRepositoryImpl,
                InMemoryAnalysisLogRepository,
            )
            db = self.db_manager
            self._analysis_log_repository = (
                AnalysisLogRepositoryImpl(db) if db else InMemoryAnalysisLogRepository()
            )
        return self._analysis_log_repository

    @property
    def user_repository(self) -> IUserRepository:
        if self._user_repository is None:
            from forexai.infrastructure.persistence.repositories import (
                InMemoryUserRepository,
                UserRepositoryImpl,
            )
            db = self.db_manager
            self._user_repository = UserRepositoryImpl(db) if db else InMemoryUserRepository()
        return self._user_repository

    # ==================== Estado ====================

    @property
    def price_cache(self) -> PriceCache:
        if self._price_cache is None:
            self._price_cache = PriceCache()
        return self._price_cache

    @property
    def config_store(self) -> EngineConfigStore:
        if self._config_store is None:
            self._config_store = EngineConfigStore(self.settings.engine_config())
        return self._config_store

    # ==================== Casos de uso ====================

    @property
    def analyze_market(self) -> AnalyzeMarketUseCase:
        if self._analyze_market is None:
            self._analyze_market = AnalyzeMarketUseCase(
                market_data=self.market_data_repository,
                analysis_logs=self.analysis_log_repository,
                config_store=self.config_store,
            )
        return self._analyze_market

    @property
    def execute_trade(self) -> ExecuteTradeUseCase:
        if self._execute_trade is None:
            self._execute_trade = ExecuteTradeUseCase(
                trade_repository=self.trade_repository,
                feed_client=self.feed_client,
                price_cache=self.price_cache,
                config_store=self.config_store,
                analysis_logs=self.analysis_log_repository,
            )
        return self._execute_trade

    @property
    def auto_trade(self) -> AutoTradeUseCase:
        """Singleton: los locks por usuario deben ser compartidos."""
        if self._auto_trade is None:
            self._auto_trade = AutoTradeUseCase(
                user_repository=self.user_repository,
                trade_repository=self.trade_repository,
                execute_trade=self.execute_trade,
                event_publisher=self.event_bus,
                config_store=self.config_store,
            )
        return self._auto_trade

    @property
    def close_trade(self) -> CloseTradeUseCase:
        if self._close_trade is None:
            self._close_trade = CloseTradeUseCase(
                trade_repository=self.trade_repository,
                price_cache=self.price_cache,
                event_publisher=self.event_bus,
            )
        return self._close_trade

    @property
    def ingestion_pipeline(self) -> IngestionPipeline:
        if self._ingestion_pipeline is None:
            s = self.settings
            self._ingestion_pipeline = IngestionPipeline(
                event_bus=self.event_bus,
                feed_client=self.feed_client,
                price_cache=self.price_cache,
                market_data=self.market_data_repository,
                analyze_market=self.analyze_market,
                auto_trader=self.auto_trade,
                config_store=self.config_store,
                symbols=s.symbols,
                granularities=s.candle_granularities,
                default_timeframe=s.analysis_timeframe,
            )
        return self._ingestion_pipeline

    # ==================== Presentación ====================

    @property
    def ws_manager(self) -> WebSocketManager:
        if self._ws_manager is None:
            self._ws_manager = WebSocketManager(self.event_bus)
        return self._ws_manager

    # ==================== Lifecycle ====================

    def reset(self) -> None:
        """Resetea todas las instancias (útil para tests)."""
        for name in list(vars(self)):
            if name.startswith("_"):
                setattr(self, name, None)

    def override(self, name: str, instance: Any) -> None:
        """
        Override de una dependencia (útil para tests con fakes).

        Args:
            name: Nombre de la dependencia (ej: 'feed_client')
            instance: Instancia a usar
        """
        attr_name = f"_{name}"
        if attr_name in vars(self):
            setattr(self, attr_name, instance)
        else:
            raise ValueError(f"Unknown dependency: {name}")


# ==================== Global Container ====================

_container: Optional[Container] = None


def get_container() -> Container:
    """Obtiene la instancia global del contenedor."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def init_container(settings: Optional[Settings] = None) -> Container:
    """Inicializa el contenedor global con una configuración específica."""
    global _container
    _container = Container(settings=settings or Settings())
    return _container


def reset_container() -> None:
    """Resetea el contenedor global."""
    global _container
    if _container is not None:
        _container.reset()
    _container = None


def create_test_container(settings: Optional[Settings] = None, **overrides) -> Container:
    """
    Contenedor para tests con dependencias reemplazadas.

    Ejemplo:
        container = create_test_container(feed_client=FakeFeed())
    """
    container = Container(settings=settings or Settings(db_enabled=False, feed_mode="simulated"))
    for name, instance in overrides.items():
        container.override(name, instance)
    return container
