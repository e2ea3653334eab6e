"""
ForexAI – Engine Config Store
=============================
Guarda la EngineConfig vigente y aplica actualizaciones parciales.

Un payload se fusiona con la configuración actual y se valida COMPLETO
antes de reemplazarla. Si falla, se lanza ConfigValidationError y la
configuración vigente queda intacta.
"""

from __future__ import annotations

from typing import Any, Dict

from pydantic import ValidationError as PydanticValidationError

from forexai.domain.exceptions.domain_errors import ConfigValidationError
from forexai.domain.services.decision_engine import DecisionConfig
from forexai.domain.services.risk_calculator import RiskConfig
from forexai.shared.config.settings import EngineConfig
from forexai.shared.logging.logger import get_logger

logger = get_logger("engine_config")


class EngineConfigStore:

    def __init__(self, config: EngineConfig = None) -> None:
        self._config = config or EngineConfig()

    def get(self) -> EngineConfig:
        return self._config

    def update(self, payload: Dict[str, Any]) -> EngineConfig:
        """
        Valida y aplica `payload` (parcial).

        Raises:
            ConfigValidationError: payload malformado o fuera de rango.
        """
        if not isinstance(payload, dict):
            raise ConfigValidationError("El payload de configuración debe ser un objeto")

        merged = {**self._config.model_dump(), **payload}
        try:
            new_config = EngineConfig.model_validate(merged)
        except PydanticValidationError as e:
            errors = [
                {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ]
            logger.warning("Configuración rechazada: %s", errors)
            raise ConfigValidationError("Configuración inválida", errors) from e

        self._config = new_config
        logger.info("Configuración del motor actualizada: %s", sorted(payload))
        return new_config

    # ─── Proyecciones a configs de dominio ──────────────────────────────

    def decision_config(self) -> DecisionConfig:
        cfg = self._config
        return DecisionConfig(
            confidence_threshold=cfg.confidence_threshold,
            max_confidence=cfg.max_confidence,
            rsi_oversold=cfg.rsi_oversold,
            rsi_overbought=cfg.rsi_overbought,
            rsi_weight=cfg.rsi_weight,
            macd_weight=cfg.macd_weight,
            bollinger_weight=cfg.bollinger_weight,
            trend_weight=cfg.trend_weight,
            trend_min_strength=cfg.trend_min_strength,
            pattern_weight=cfg.pattern_weight,
            level_weight=cfg.level_weight,
            level_proximity=cfg.level_proximity,
            volume_bonus=cfg.volume_bonus,
        )

    def risk_config(self) -> RiskConfig:
        cfg = self._config
        return RiskConfig(
            stop_loss_atr_multiplier=cfg.stop_loss_atr_multiplier,
            take_profit_atr_multiplier=cfg.take_profit_atr_multiplier,
            default_stop_loss_pct=cfg.default_stop_loss_pct,
            default_take_profit_pct=cfg.default_take_profit_pct,
        )
