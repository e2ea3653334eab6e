"""
ForexAI – Event Bus
===================
Implementación en memoria de IEventBus: una asyncio.Queue acotada por
consumidor y por tópico.

TÓPICOS:
  feed.tick / feed.candle / feed.status   → IngestionPipeline
  tick_update, candle_update, ai_analysis,
  auto_trade_executed, trade_closed,
  connection_status, connection_fatal     → WebSocketManager

COLA LLENA:
  publish() nunca espera. Si la cola de un consumidor está llena se saca
  su evento más viejo para hacer lugar al nuevo; `stats["dropped"]` cuenta
  cuántos se perdieron. Las colas de los demás consumidores no se tocan.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Tuple

from forexai.application.ports.event_publisher import IEventBus
from forexai.shared.logging.logger import get_logger

logger = get_logger("event_bus")

Subscriber = Tuple[asyncio.Queue, str]


class EventBus(IEventBus):

    def __init__(self, max_queue_size: int = 10_000) -> None:
        self._max_queue_size = max_queue_size
        self._subscribers: Dict[str, List[Subscriber]] = {}
        self._lock = asyncio.Lock()
        self._published = 0
        self._dropped = 0

    async def subscribe(self, topic: str, consumer_name: str) -> asyncio.Queue:
        """Devuelve una cola nueva, exclusiva de `consumer_name` en `topic`."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
        async with self._lock:
            self._subscribers.setdefault(topic, []).append((queue, consumer_name))
        logger.info(
            "'%s' escucha '%s' (cola de %d)", consumer_name, topic, self._max_queue_size,
        )
        return queue

    async def publish(self, topic: str, data: Any) -> None:
        self._published += 1
        for queue, consumer_name in self._subscribers.get(topic, []):
            self._offer(queue, data, consumer_name, topic)

    def _offer(self, queue: asyncio.Queue, data: Any, consumer_name: str, topic: str) -> None:
        if queue.full():
            try:
                queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
            else:
                self._dropped += 1
                logger.warning("'%s' atrasado en '%s': se descarta el evento más viejo", consumer_name, topic)
        try:
            queue.put_nowait(data)
        except asyncio.QueueFull:
            logger.error("Evento de '%s' perdido para '%s'", topic, consumer_name)

    async def unsubscribe_all(self, topic: str | None = None) -> None:
        async with self._lock:
            if topic:
                removed = len(self._subscribers.pop(topic, []))
            else:
                removed = self.subscriber_count
                self._subscribers.clear()
        logger.info("%d suscripciones eliminadas (%s)", removed, topic or "todos los tópicos")

    @property
    def subscriber_count(self) -> int:
        return sum(len(subs) for subs in self._subscribers.values())

    @property
    def stats(self) -> dict:
        return {
            "topics": sorted(self._subscribers),
            "subscribers": self.subscriber_count,
            "published": self._published,
            "dropped": self._dropped,
        }
