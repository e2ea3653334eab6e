"""
ForexAI – Keyed Locks
=====================
Un asyncio.Lock por clave, creado bajo demanda.

Escritores de claves distintas nunca se serializan entre sí; dos
escritores de la misma clave sí.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Hashable


class KeyedLock:
    """Mapa clave → asyncio.Lock."""

    def __init__(self) -> None:
        self._locks: Dict[Hashable, asyncio.Lock] = {}

    def get(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def __call__(self, key: Hashable) -> asyncio.Lock:
        return self.get(key)

    def __len__(self) -> int:
        return len(self._locks)
