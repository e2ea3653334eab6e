"""
ForexAI – Use Case: Close Trade
===============================
Cierra un trade activo al precio indicado (o al precio cacheado).

La transición es atómica: la entidad devuelve una instancia nueva con
status/exit_price/profit_loss/closed_at juntos, y el repositorio la
persiste en una sola escritura. Los errores de persistencia se propagan.
"""

from __future__ import annotations

from typing import Optional

from forexai.application.ports.event_publisher import TRADE_CLOSED, IEventPublisher
from forexai.application.state.price_cache import PriceCache
from forexai.domain.entities.trade import Trade
from forexai.domain.events.domain_events import TradeClosed
from forexai.domain.exceptions.domain_errors import InvalidTradeError
from forexai.domain.repositories.trade_repository import ITradeRepository
from forexai.shared.logging.logger import get_logger

logger = get_logger("close_trade")


class CloseTradeUseCase:

    def __init__(
        self,
        trade_repository: ITradeRepository,
        price_cache: PriceCache,
        event_publisher: IEventPublisher,
    ):
        self._trades = trade_repository
        self._prices = price_cache
        self._publisher = event_publisher

    async def close(
        self,
        trade_id: str,
        exit_price: Optional[float] = None,
        user_id: Optional[str] = None,
    ) -> Trade:
        """
        Raises:
            InvalidTradeError: trade inexistente, ajeno, no activo o sin precio.
        """
        trade = await self._trades.get(trade_id)
        if trade is None or (user_id is not None and trade.user_id != user_id):
            raise InvalidTradeError("Trade no encontrado", trade_id)

        price = exit_price if exit_price is not None else self._prices.get_price(trade.symbol)
        if price is None:
            raise InvalidTradeError(f"Sin precio para cerrar {trade.symbol}", trade_id)

        closed = await self._trades.update_closed(trade.close(price))

        logger.info(
            "Trade %s cerrado @ %.5f P&L=%.2f", closed.trade_id,
            closed.exit_price, closed.profit_loss,
        )
        await self._publisher.publish(
            TRADE_CLOSED,
            TradeClosed(
                trade_id=closed.trade_id,
                user_id=closed.user_id,
                symbol=closed.symbol,
                trade_type=closed.trade_type.value,
                entry_price=closed.entry_price,
                exit_price=closed.exit_price,
                profit_loss=closed.profit_loss,
            ).to_dict(),
        )
        return closed
