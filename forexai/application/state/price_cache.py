"""
ForexAI – Price Cache
=====================
Último precio autoritativo por símbolo.

CONCURRENCIA (single-writer, copy-on-read):
- Solo el IngestionPipeline escribe (update()).
- Cada update construye un dict NUEVO y lo publica como
  MappingProxyType. Los lectores toman la referencia vigente y nunca
  ven un estado a medio escribir; nunca bloquean al escritor.
- Last-write-wins en orden de llegada. Sin historial de ticks.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

from forexai.domain.value_objects.tick import PriceSnapshot, PriceTick
from forexai.shared.logging.logger import get_logger

logger = get_logger("price_cache")


class PriceCache:
    """Cache key-value de PriceSnapshot inmutables."""

    def __init__(self) -> None:
        self._snapshot: Mapping[str, PriceSnapshot] = MappingProxyType({})
        self._updates: int = 0

    def update(self, tick: PriceTick) -> PriceSnapshot:
        """Reemplaza la entrada del símbolo. Returns: el snapshot nuevo."""
        current = self._snapshot
        entry = PriceSnapshot.from_tick(tick, current.get(tick.symbol))
        if tick.symbol not in current:
            logger.info("Primer precio para '%s': %.5f", tick.symbol, tick.price)

        updated = dict(current)
        updated[tick.symbol] = entry
        self._snapshot = MappingProxyType(updated)
        self._updates += 1
        return entry

    def get(self, symbol: str) -> Optional[PriceSnapshot]:
        return self._snapshot.get(symbol)

    def get_price(self, symbol: str) -> Optional[float]:
        entry = self._snapshot.get(symbol)
        return entry.price if entry else None

    def snapshot(self) -> Mapping[str, PriceSnapshot]:
        """Vista inmutable de todos los precios en este instante."""
        return self._snapshot

    @property
    def symbols(self) -> list[str]:
        return sorted(self._snapshot)

    @property
    def update_count(self) -> int:
        return self._updates
