"""
ForexAI – Domain Repository Interface: Analysis Log
===================================================
Log append-only de análisis, decisiones y trades.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from forexai.domain.entities.decision import AnalysisLog


class IAnalysisLogRepository(ABC):

    @abstractmethod
    async def append(self, entry: AnalysisLog) -> None:
        pass

    @abstractmethod
    async def list_recent(
        self, symbol: Optional[str] = None, limit: int = 50,
    ) -> List[AnalysisLog]:
        """Entradas más recientes primero, opcionalmente filtradas por símbolo."""
        pass
