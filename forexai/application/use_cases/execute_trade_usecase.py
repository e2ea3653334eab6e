"""
ForexAI – Use Case: Execute Trade (Execution Adapter)
=====================================================
Convierte (usuario, símbolo, decisión) en un Trade persistido.

FLUJO:
  1. Precio actual desde PriceCache (fallback: precio de la decisión)
  2. SL/TP de la decisión, o porcentajes por defecto (2% / 3%)
  3. DEMO → trade_id local, sin broker
     LIVE → orden al broker; SOLO con contract_id confirmado se persiste
            (el contract_id pasa a ser el trade_id)
  4. Persistir Trade en estado ACTIVE

ERRORES:
- Broker rechaza / no confirma → BrokerExecutionError, ningún Trade
  creado, sin reintento (decide el caller).
- Error de persistencia → se propaga tal cual.
- Fallo al escribir el log del trade → warning, se ignora.
"""

from __future__ import annotations

import time
import uuid
from typing import Optional

from forexai.application.ports.market_data_provider import BuyOrder, IFeedClient
from forexai.application.state.engine_config_store import EngineConfigStore
from forexai.application.state.price_cache import PriceCache
from forexai.domain.entities.decision import Action, AnalysisLog, Decision, LogType
from forexai.domain.entities.trade import Trade, TradeStatus, TradeType
from forexai.domain.entities.user import TradingUser
from forexai.domain.exceptions.domain_errors import (
    BrokerExecutionError,
    FeedConnectivityError,
    InvalidTradeError,
)
from forexai.domain.repositories.analysis_log_repository import IAnalysisLogRepository
from forexai.domain.repositories.trade_repository import ITradeRepository
from forexai.domain.services.risk_calculator import RiskCalculator
from forexai.shared.logging.logger import get_logger

logger = get_logger("execute_trade")


def generate_trade_id(now: Optional[float] = None) -> str:
    """ID local: AUTO_<epoch_ms>_<6 hex>."""
    millis = int((now if now is not None else time.time()) * 1000)
    return f"AUTO_{millis}_{uuid.uuid4().hex[:6]}"


class ExecuteTradeUseCase:
    """Execution Adapter: decisión → Trade (demo o live)."""

    def __init__(
        self,
        trade_repository: ITradeRepository,
        feed_client: IFeedClient,
        price_cache: PriceCache,
        config_store: EngineConfigStore,
        analysis_logs: Optional[IAnalysisLogRepository] = None,
    ):
        self._trades = trade_repository
        self._feed = feed_client
        self._prices = price_cache
        self._config_store = config_store
        self._analysis_logs = analysis_logs

    async def execute(self, user: TradingUser, symbol: str, decision: Decision) -> Trade:
        """
        Raises:
            InvalidTradeError: decisión HOLD o sin precio disponible.
            BrokerExecutionError: orden live rechazada (no se persiste nada).
            UnsupportedSymbolError: símbolo sin mapeo en el broker.
        """
        if decision.action == Action.HOLD:
            raise InvalidTradeError("Una decisión HOLD no se ejecuta")

        price = self._prices.get_price(symbol) or decision.current_price
        if not price:
            raise InvalidTradeError(f"Sin precio actual para {symbol}")

        trade_type = TradeType.BUY if decision.action == Action.BUY else TradeType.SELL
        stop_loss, take_profit = self._levels(decision, price)

        contract_id = None
        if user.demo_mode:
            trade_id = generate_trade_id()
        else:
            contract_id = await self._place_live_order(user, symbol, decision.action)
            trade_id = contract_id

        trade = Trade(
            trade_id=trade_id,
            user_id=user.user_id,
            symbol=symbol,
            trade_type=trade_type,
            entry_price=price,
            amount=user.entry_amount,
            status=TradeStatus.ACTIVE,
            is_demo=user.demo_mode,
            confidence=decision.confidence,
            stop_loss=stop_loss,
            take_profit=take_profit,
            broker_contract_id=contract_id,
            decision_snapshot=decision.to_dict(),
        )
        saved = await self._trades.add(trade)

        logger.info(
            "Trade %s abierto: user=%s %s %s @ %.5f amount=%.2f demo=%s",
            saved.trade_id, user.user_id, trade_type.value.upper(), symbol,
            price, user.entry_amount, user.demo_mode,
        )
        await self._log_trade(saved)
        return saved

    # ────────────────────────────────────────────────────────────────

    def _levels(self, decision: Decision, price: float) -> tuple[float, float]:
        default_sl, default_tp = RiskCalculator(
            self._config_store.risk_config()
        ).percentage_levels(decision.action, price)
        stop_loss = decision.suggested_stop_loss
        take_profit = decision.suggested_take_profit
        return (
            stop_loss if stop_loss is not None else default_sl,
            take_profit if take_profit is not None else default_tp,
        )

    async def _place_live_order(self, user: TradingUser, symbol: str, action: Action) -> str:
        order = BuyOrder(
            symbol=symbol,
            contract_type="CALL" if action == Action.BUY else "PUT",
            amount=user.entry_amount,
            duration=self._config_store.get().contract_duration_seconds,
        )
        try:
            response = await self._feed.buy(order)
        except FeedConnectivityError as e:
            raise BrokerExecutionError(
                f"Broker no disponible: {e.message}", symbol=symbol,
            ) from e

        contract_id = response.get("contract_id") if response else None
        if not contract_id:
            raise BrokerExecutionError(
                "El broker no confirmó la orden (sin contract_id)", symbol=symbol,
            )
        return str(contract_id)

    async def _log_trade(self, trade: Trade) -> None:
        if self._analysis_logs is None:
            return
        try:
            await self._analysis_logs.append(AnalysisLog(
                log_type=LogType.TRADE,
                symbol=trade.symbol,
                message=f"Trade {trade.trade_type.value.upper()} {trade.symbol} "
                        f"@ {trade.entry_price:.5f}",
                confidence=trade.confidence,
                data=trade.to_dict(),
                user_id=trade.user_id,
            ))
        except Exception as e:
            logger.warning("No se pudo registrar el trade %s: %s", trade.trade_id, e)
