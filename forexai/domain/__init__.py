"""
ForexAI – Domain Layer
======================
Núcleo puro del sistema. CERO dependencias de frameworks.

- entities/: Candle, Trade, Decision, AnalysisLog, TradingUser
- value_objects/: PriceTick, PriceSnapshot, IndicatorSet, contexto de mercado
- services/: indicadores, patrones, motor de decisión, riesgo
- repositories/: interfaces abstractas (ABCs)
- events/: eventos de dominio
- exceptions/: excepciones de dominio

REGLA DE DEPENDENCIA:
Este módulo NO importa de application/, infrastructure/ ni presentation/.
"""

from forexai.domain.entities.candle import Candle
from forexai.domain.entities.trade import Trade, TradeStatus, TradeType
from forexai.domain.entities.decision import Action, Decision, AnalysisLog
from forexai.domain.value_objects.tick import PriceTick

__all__ = [
    "Candle",
    "Trade",
    "TradeStatus",
    "TradeType",
    "Action",
    "Decision",
    "AnalysisLog",
    "PriceTick",
]
