"""
ForexAI – Domain Service: Risk Calculator
=========================================
Nivel de riesgo de una decisión y niveles SL/TP.

RISK LEVEL (puntuación aditiva):
  confianza < 0.6  → +3 | < 0.75 → +2 | resto → +1
  ATR > 0.002      → +2 | > 0.001 → +1
  RSI < 20 o > 80  → +1
  score ≤ 2 low | ≤ 4 medium | resto high

SL/TP:
  Con ATR:   BUY  SL = entry - ATR×m_sl   TP = entry + ATR×m_tp
             SELL SL = entry + ATR×m_sl   TP = entry - ATR×m_tp
  Sin ATR:   porcentajes fijos del precio de entrada (2% / 3%).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from forexai.domain.entities.decision import Action, RiskLevel
from forexai.domain.exceptions.domain_errors import ValidationError


@dataclass
class RiskConfig:
    """Configuración de gestión de riesgo."""

    stop_loss_atr_multiplier: float = 2.0
    take_profit_atr_multiplier: float = 3.0
    default_stop_loss_pct: float = 0.02
    default_take_profit_pct: float = 0.03


class RiskCalculator:
    """
    Calculadora de niveles de riesgo.

    NO tiene dependencias externas.
    """

    def __init__(self, config: RiskConfig = None):
        self._config = config or RiskConfig()

    @staticmethod
    def risk_level(confidence: float, atr: Optional[float], rsi: Optional[float]) -> RiskLevel:
        score = 0

        if confidence < 0.6:
            score += 3
        elif confidence < 0.75:
            score += 2
        else:
            score += 1

        if atr is not None:
            if atr > 0.002:
                score += 2
            elif atr > 0.001:
                score += 1

        if rsi is not None and (rsi < 20 or rsi > 80):
            score += 1

        if score <= 2:
            return RiskLevel.LOW
        if score <= 4:
            return RiskLevel.MEDIUM
        return RiskLevel.HIGH

    def atr_levels(
        self, action: Action, entry: float, atr: Optional[float],
    ) -> Tuple[Optional[float], Optional[float]]:
        """SL/TP a partir del ATR. HOLD o ATR ausente → (None, None)."""
        if action == Action.HOLD or atr is None:
            return None, None

        sl_distance = atr * self._config.stop_loss_atr_multiplier
        tp_distance = atr * self._config.take_profit_atr_multiplier
        if action == Action.BUY:
            return entry - sl_distance, entry + tp_distance
        return entry + sl_distance, entry - tp_distance

    def percentage_levels(self, action: Action, entry: float) -> Tuple[float, float]:
        """SL/TP por defecto como porcentaje del precio de entrada."""
        if action == Action.HOLD:
            raise ValidationError("No hay niveles para HOLD", field="action", value=action)

        sl_pct = self._config.default_stop_loss_pct
        tp_pct = self._config.default_take_profit_pct
        if action == Action.BUY:
            return entry * (1 - sl_pct), entry * (1 + tp_pct)
        return entry * (1 + sl_pct), entry * (1 - tp_pct)
