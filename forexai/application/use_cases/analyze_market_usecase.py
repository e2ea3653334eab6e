"""
ForexAI – Use Case: Analyze Market
==================================
Una corrida completa de análisis para (symbol, timeframe):

  Market Data Store ──(200 velas ASC)──▸ IndicatorCalculator
                                      ▸ PatternDetector (patrones, S/R,
                                        tendencia, volumen)
                                      ▸ DecisionEngine ──▸ Decision
                                      ▸ AnalysisLog (append)

FAIL-SAFE:
- Menos de 50 velas → InsufficientDataError → HOLD con confianza 0.
- Cualquier otro error de análisis → HOLD con confianza 0.
  Nunca se degrada hacia un BUY/SELL no controlado.
- Un fallo al escribir el log se registra como warning y se ignora:
  el log nunca bloquea el trading.
"""

from __future__ import annotations

import time

from forexai.application.state.engine_config_store import EngineConfigStore
from forexai.domain.entities.decision import AnalysisLog, Decision
from forexai.domain.exceptions.domain_errors import InsufficientDataError
from forexai.domain.repositories.analysis_log_repository import IAnalysisLogRepository
from forexai.domain.repositories.market_data_repository import IMarketDataRepository
from forexai.domain.services.decision_engine import DecisionEngine
from forexai.domain.services.indicator_calculator import IndicatorCalculator
from forexai.domain.services.pattern_detector import PatternDetector
from forexai.domain.services.risk_calculator import RiskCalculator
from forexai.domain.value_objects.indicator_set import last
from forexai.shared.logging.logger import get_logger

logger = get_logger("analyze_market")


class AnalyzeMarketUseCase:
    """
    Caso de uso: analizar un símbolo y producir una Decision.

    El motor se construye en cada corrida con la EngineConfig vigente,
    así un cambio de configuración aplica al siguiente análisis.
    """

    def __init__(
        self,
        market_data: IMarketDataRepository,
        analysis_logs: IAnalysisLogRepository,
        config_store: EngineConfigStore,
    ):
        self._market_data = market_data
        self._analysis_logs = analysis_logs
        self._config_store = config_store

    async def analyze(self, symbol: str, timeframe: str = "5m") -> Decision:
        context = {"symbol": symbol, "timeframe": timeframe, "timestamp": time.time()}

        try:
            decision = await self._run(symbol, timeframe, context)
        except InsufficientDataError as e:
            logger.warning(
                "Datos insuficientes para %s/%s: %d/%d velas",
                symbol, timeframe, e.available, e.required,
            )
            decision = Decision.hold("Insufficient data", error=e.message, **context)
        except Exception as e:
            logger.exception("Error analizando %s/%s", symbol, timeframe)
            decision = Decision.hold("Analysis failed", error=str(e), **context)

        await self._log(decision)
        return decision

    async def _run(self, symbol: str, timeframe: str, context: dict) -> Decision:
        cfg = self._config_store.get()
        candles = await self._market_data.get_recent_candles(
            symbol, timeframe, cfg.analysis_window,
        )
        if len(candles) < cfg.min_candles:
            raise InsufficientDataError(
                f"Se requieren {cfg.min_candles} velas, hay {len(candles)}",
                required=cfg.min_candles,
                available=len(candles),
            )

        price = candles[-1].close
        indicators = IndicatorCalculator.compute_all(candles)
        patterns = PatternDetector.detect_patterns(candles)
        levels = PatternDetector.support_resistance(candles)
        trend = PatternDetector.analyze_trend(
            price, last(indicators.sma20), last(indicators.sma50),
        )
        volume = PatternDetector.analyze_volume(
            [c.volume for c in candles], cfg.high_volume_ratio,
        )

        engine = DecisionEngine(
            self._config_store.decision_config(),
            RiskCalculator(self._config_store.risk_config()),
        )
        decision = engine.decide(indicators, patterns, levels, trend, volume, price)

        logger.info(
            "Análisis %s/%s: %s conf=%.3f (bull=%.1f bear=%.1f) riesgo=%s",
            symbol, timeframe, decision.action.value, decision.confidence,
            decision.bullish_signals, decision.bearish_signals,
            decision.risk_level.value,
        )
        return decision.with_context(current_price=price, **context)

    async def _log(self, decision: Decision) -> None:
        try:
            await self._analysis_logs.append(AnalysisLog.from_decision(decision))
        except Exception as e:
            logger.warning("No se pudo registrar el análisis de %s: %s", decision.symbol, e)
