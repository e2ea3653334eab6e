"""
ForexAI – WebSocket Manager (broadcast a clientes frontend)
===========================================================
Entrega de las notificaciones del núcleo a los clientes conectados.

ARQUITECTURA:
  EventBus ──(tick_update)─────────▸ WSManager._broadcast_loop()
  EventBus ──(ai_analysis)─────────▸ WSManager._broadcast_loop()
  EventBus ──(...)─────────────────▸ ...
       │
       ▼
  [Cliente WS 1, Cliente WS 2, ...]

Mensaje: {"type": <tópico>, "data": <payload>}

NO BLOQUEA EL LOOP PRINCIPAL:
- Un task de broadcast por tópico.
- El envío a cada cliente tiene timeout; un cliente lento o caído se
  elimina sin afectar a los demás.
"""

from __future__ import annotations

import asyncio
import json
from typing import Iterable, Set

from fastapi import WebSocket

from forexai.application.ports.event_publisher import NOTIFICATION_TOPICS, IEventBus
from forexai.shared.logging.logger import get_logger

logger = get_logger("ws_manager")

SEND_TIMEOUT = 5.0


class WebSocketManager:
    """Gestiona conexiones frontend y broadcast de notificaciones."""

    def __init__(self, event_bus: IEventBus, topics: Iterable[str] = NOTIFICATION_TOPICS) -> None:
        self._event_bus = event_bus
        self._topics = tuple(topics)
        self._clients: Set[WebSocket] = set()
        self._broadcast_tasks: list[asyncio.Task] = []
        self._messages_sent = 0

    async def start(self) -> None:
        """Lanzar un loop de broadcast por tópico."""
        for topic in self._topics:
            queue = await self._event_bus.subscribe(topic, f"ws_broadcast_{topic}")
            self._broadcast_tasks.append(asyncio.create_task(
                self._broadcast_loop(queue, topic), name=f"ws-broadcast-{topic}",
            ))
        logger.info("WebSocketManager iniciado – broadcast de %s", ", ".join(self._topics))

    async def stop(self) -> None:
        """Cancelar broadcast y cerrar todos los clientes."""
        for task in self._broadcast_tasks:
            task.cancel()
        for task in self._broadcast_tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._broadcast_tasks.clear()

        for ws in list(self._clients):
            try:
                await ws.close()
            except RuntimeError as e:
                logger.debug("Cliente WS ya cerrado: %s", e)
        self._clients.clear()
        logger.info("WebSocketManager detenido")

    async def connect(self, websocket: WebSocket) -> None:
        """Registrar un nuevo cliente WebSocket."""
        await websocket.accept()
        self._clients.add(websocket)
        logger.info("Cliente WS conectado. Total: %d", len(self._clients))

    def disconnect(self, websocket: WebSocket) -> None:
        """Des-registrar un cliente desconectado."""
        self._clients.discard(websocket)
        logger.info("Cliente WS desconectado. Total: %d", len(self._clients))

    async def _broadcast_loop(self, queue: asyncio.Queue, event_type: str) -> None:
        """Consume eventos de una Queue y los envía a todos los clientes."""
        try:
            while True:
                try:
                    data = await asyncio.wait_for(queue.get(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue

                if not self._clients:
                    continue

                payload_data = data.to_dict() if hasattr(data, "to_dict") else data
                payload = json.dumps({"type": event_type, "data": payload_data}, default=str)
                await self.broadcast(payload)

        except asyncio.CancelledError:
            pass  # Shutdown limpio

    async def broadcast(self, payload: str) -> None:
        """Envía un mensaje ya serializado a todos los clientes en paralelo."""
        disconnected: list[WebSocket] = []
        await asyncio.gather(*(
            self._safe_send(ws, payload, disconnected) for ws in list(self._clients)
        ))
        for ws in disconnected:
            self._clients.discard(ws)
        self._messages_sent += 1

    async def _safe_send(
        self, ws: WebSocket, payload: str, disconnected: list[WebSocket]
    ) -> None:
        """
        Enviar payload a un cliente con timeout.
        Si falla, se marca como desconectado para limpieza.
        """
        try:
            await asyncio.wait_for(ws.send_text(payload), timeout=SEND_TIMEOUT)
        except Exception as e:
            logger.debug("Envío WS fallido, cliente descartado: %s", e)
            disconnected.append(ws)

    @property
    def client_count(self) -> int:
        return len(self._clients)

    @property
    def stats(self) -> dict:
        return {"clients": len(self._clients), "messages_sent": self._messages_sent}
