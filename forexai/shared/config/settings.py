"""
ForexAI – Settings (Pydantic BaseSettings)
==========================================
Configuración centralizada cargada desde variables de entorno / .env.
Se usa pydantic-settings para validación estricta al arranque.

Dos niveles:
- Settings: infraestructura (feed, base de datos, servidor) + valores
  iniciales del motor.
- EngineConfig: parámetros del motor de análisis/ejecución que se pueden
  cambiar en caliente. Es un modelo pydantic con rangos validados; un
  payload inválido nunca llega a reemplazar la configuración vigente.
"""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings


TIMEFRAMES: Dict[str, int] = {
    "1m": 60,
    "5m": 300,
    "15m": 900,
    "1h": 3600,
    "4h": 14400,
    "1d": 86400,
}

SUBSCRIPTION_TIERS = ("free", "basic", "premium")


class EngineConfig(BaseModel):
    """
    Parámetros del motor. Cada default es un campo explícito con rango.

    Los caps diarios usan -1 como "ilimitado" y 0 como "sin auto-trading".
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # ─── Umbrales de decisión ───────────────────────────────────────────
    confidence_threshold: float = Field(default=0.75, ge=0.1, le=0.95)
    auto_trade_confidence_threshold: float = Field(default=0.8, ge=0.1, le=0.95)
    max_confidence: float = Field(default=0.95, gt=0.0, le=0.95)

    # ─── Pesos del scoring ──────────────────────────────────────────────
    rsi_weight: float = Field(default=2.0, ge=0.0, le=10.0)
    macd_weight: float = Field(default=1.5, ge=0.0, le=10.0)
    bollinger_weight: float = Field(default=1.0, ge=0.0, le=10.0)
    trend_weight: float = Field(default=1.0, ge=0.0, le=10.0)
    pattern_weight: float = Field(default=1.0, ge=0.0, le=10.0)
    level_weight: float = Field(default=0.5, ge=0.0, le=10.0)
    volume_bonus: float = Field(default=0.2, ge=0.0, le=0.95)

    rsi_oversold: float = Field(default=30.0, ge=0.0, le=100.0)
    rsi_overbought: float = Field(default=70.0, ge=0.0, le=100.0)
    trend_min_strength: float = Field(default=1.0, ge=0.0)
    level_proximity: float = Field(default=0.001, gt=0.0, le=0.1)
    high_volume_ratio: float = Field(default=1.5, gt=0.0)

    # ─── Riesgo ─────────────────────────────────────────────────────────
    stop_loss_atr_multiplier: float = Field(default=2.0, ge=1.0, le=5.0)
    take_profit_atr_multiplier: float = Field(default=3.0, ge=1.0, le=10.0)
    default_stop_loss_pct: float = Field(default=0.02, gt=0.0, le=0.5)
    default_take_profit_pct: float = Field(default=0.03, gt=0.0, le=0.5)

    # ─── Historial ──────────────────────────────────────────────────────
    min_candles: int = Field(default=50, ge=50, le=1000)
    analysis_window: int = Field(default=200, ge=50, le=5000)

    # ─── Ingestión ──────────────────────────────────────────────────────
    candle_sampling_interval: int = Field(default=5, ge=1, le=1000)
    daily_trade_caps: Dict[str, int] = Field(
        default_factory=lambda: {"free": 0, "basic": 50, "premium": -1},
    )
    max_reconnect_attempts: int = Field(default=5, ge=0, le=100)
    reconnect_delay_ms: int = Field(default=5000, ge=0, le=600_000)
    feed_request_timeout: float = Field(default=30.0, gt=0.0, le=600.0)

    # ─── Ejecución live ─────────────────────────────────────────────────
    contract_duration_seconds: int = Field(default=300, ge=15, le=86400)

    @field_validator("daily_trade_caps")
    @classmethod
    def _check_caps(cls, caps: Dict[str, int]) -> Dict[str, int]:
        unknown = set(caps) - set(SUBSCRIPTION_TIERS)
        if unknown:
            raise ValueError(f"Tiers desconocidos: {sorted(unknown)}")
        for tier, cap in caps.items():
            if cap < -1:
                raise ValueError(f"Cap inválido para '{tier}': {cap}")
        return caps

    @field_validator("rsi_overbought")
    @classmethod
    def _check_rsi_bounds(cls, value: float, info) -> float:
        oversold = info.data.get("rsi_oversold")
        if oversold is not None and value <= oversold:
            raise ValueError("rsi_overbought debe ser mayor que rsi_oversold")
        return value

    @property
    def reconnect_delay_seconds(self) -> float:
        return self.reconnect_delay_ms / 1000.0

    def tier_cap(self, tier: str) -> int:
        """Cap diario del tier (0 si el tier no está configurado)."""
        return self.daily_trade_caps.get(tier, 0)


class Settings(BaseSettings):
    # ─── Feed ───────────────────────────────────────────────────────────
    feed_mode: str = Field(
        default="simulated", description="'deriv' (WebSocket real) o 'simulated'"
    )
    deriv_app_id: str = Field(default="1089", description="App ID registrado en Deriv")
    deriv_ws_url: str = Field(
        default="wss://ws.binaryws.com/websockets/v3",
        description="WebSocket endpoint de Deriv",
    )
    deriv_api_token: str = Field(
        default="", description="Token API de Deriv (requerido para operar en live)"
    )
    deriv_connect_timeout: float = Field(
        default=10.0, description="Timeout (seg) del handshake WebSocket"
    )
    ws_heartbeat_interval: int = Field(
        default=30, description="Intervalo (seg) de ping/heartbeat a Deriv"
    )

    # Pares a suscribir (nombres de mercado, no IDs de Deriv)
    symbols: List[str] = Field(
        default=["EURUSD", "GBPUSD", "USDJPY", "AUDUSD"],
        description="Pares FOREX activos",
    )
    candle_granularities: List[int] = Field(
        default=[60, 300],
        description="Granularidades (seg) de velas suscritas por símbolo",
    )
    analysis_timeframe: str = Field(
        default="5m", description="Timeframe por defecto para análisis manual"
    )

    # ─── Simulación ─────────────────────────────────────────────────────
    simulation_tick_interval: float = Field(
        default=1.0, description="Segundos entre ticks simulados"
    )
    simulation_history_candles: int = Field(
        default=200, description="Velas históricas sintéticas por suscripción"
    )

    # ─── Motor (valores iniciales de EngineConfig) ──────────────────────
    confidence_threshold: float = Field(default=0.75, description="Umbral mínimo de confianza")
    auto_trade_confidence_threshold: float = Field(
        default=0.8, description="Confianza mínima para auto-trading"
    )
    candle_sampling_interval: int = Field(
        default=5, description="Analizar cada N velas recibidas"
    )
    stop_loss_atr_multiplier: float = Field(default=2.0, description="Multiplicador ATR del SL")
    take_profit_atr_multiplier: float = Field(default=3.0, description="Multiplicador ATR del TP")
    max_reconnect_attempts: int = Field(default=5, description="Intentos de reconexión al feed")
    reconnect_delay_ms: int = Field(default=5000, description="Delay fijo entre reintentos (ms)")
    feed_request_timeout: float = Field(
        default=30.0, description="Timeout (seg) de requests al feed"
    )

    # ─── Event Bus ──────────────────────────────────────────────────────
    event_bus_max_queue_size: int = Field(
        default=10_000,
        description="Tamaño máximo de cola del Event Bus para contrapresión",
    )

    # ─── Server ─────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8888)
    debug: bool = Field(default=False)

    # ─── Database ───────────────────────────────────────────────────────
    db_enabled: bool = Field(default=False, description="Habilitar persistencia SQL")
    db_url: str = Field(
        default="", description="URL SQLAlchemy completa (sobrescribe db_host/db_*)"
    )
    db_host: str = Field(default="localhost", description="MySQL host")
    db_port: int = Field(default=3306, description="MySQL port")
    db_user: str = Field(default="forexai", description="MySQL username")
    db_password: str = Field(default="forexai_secret", description="MySQL password")
    db_name: str = Field(default="forexai", description="MySQL database name")
    db_echo: bool = Field(default=False, description="Loguear queries SQL (debug)")
    db_pool_size: int = Field(default=5, description="Conexiones en el pool")
    db_max_overflow: int = Field(default=10, description="Conexiones extra en picos")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    def engine_config(self) -> EngineConfig:
        """Construye la EngineConfig inicial a partir del entorno."""
        return EngineConfig(
            confidence_threshold=self.confidence_threshold,
            auto_trade_confidence_threshold=self.auto_trade_confidence_threshold,
            candle_sampling_interval=self.candle_sampling_interval,
            stop_loss_atr_multiplier=self.stop_loss_atr_multiplier,
            take_profit_atr_multiplier=self.take_profit_atr_multiplier,
            max_reconnect_attempts=self.max_reconnect_attempts,
            reconnect_delay_ms=self.reconnect_delay_ms,
            feed_request_timeout=self.feed_request_timeout,
        )


# Singleton global – se importa donde se necesite
settings = Settings()
