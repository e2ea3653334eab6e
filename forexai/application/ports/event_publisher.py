"""
ForexAI – Application Port: Event Publisher (Notification Sink)
===============================================================
Interfaz fire-and-forget para publicar eventos hacia el exterior.

Los use cases publican; la infraestructura decide CÓMO se entregan
(EventBus → WebSocket, message broker, etc.). El núcleo no depende de
garantías de entrega.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any

# Tópicos de notificación
TICK_UPDATE = "tick_update"
CANDLE_UPDATE = "candle_update"
AI_ANALYSIS = "ai_analysis"
AUTO_TRADE_EXECUTED = "auto_trade_executed"
TRADE_CLOSED = "trade_closed"
CONNECTION_STATUS = "connection_status"
CONNECTION_FATAL = "connection_fatal"

NOTIFICATION_TOPICS = (
    TICK_UPDATE,
    CANDLE_UPDATE,
    AI_ANALYSIS,
    AUTO_TRADE_EXECUTED,
    TRADE_CLOSED,
    CONNECTION_STATUS,
    CONNECTION_FATAL,
)


class IEventPublisher(ABC):
    """
    Interfaz del sink de notificaciones.

    IMPLEMENTACIONES POSIBLES:
    - EventBus (fan-out in-process hacia WebSocketManager)
    - Mock (testing)
    """

    @abstractmethod
    async def publish(self, topic: str, data: Any) -> None:
        """
        Publica un evento. Nunca bloquea esperando consumidores.

        Args:
            topic: Tópico (e.g. "tick_update")
            data: Payload (dict o entidad con to_dict())
        """
        pass


class IEventBus(IEventPublisher):
    """
    Publisher con suscripción: cada consumidor recibe su propia cola.

    El pipeline de ingestión consume los tópicos del feed a través de
    esta interfaz; el WebSocketManager consume los de notificación.
    """

    @abstractmethod
    async def subscribe(self, topic: str, consumer_name: str) -> asyncio.Queue:
        """Registra un consumidor y devuelve su cola exclusiva."""
        pass

    @abstractmethod
    async def unsubscribe_all(self, topic: str | None = None) -> None:
        pass
