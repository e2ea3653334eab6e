"""
ForexAI – Analysis Log Repository (SQLAlchemy)
==============================================
Log append-only sobre la tabla `analysis_logs`.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import desc, select

from forexai.domain.entities.decision import AnalysisLog
from forexai.domain.repositories.analysis_log_repository import IAnalysisLogRepository
from forexai.infrastructure.persistence.database import DatabaseManager
from forexai.infrastructure.persistence.models import AnalysisLogModel


class AnalysisLogRepositoryImpl(IAnalysisLogRepository):

    def __init__(self, db: DatabaseManager):
        self._db = db

    async def append(self, entry: AnalysisLog) -> None:
        async with self._db.session() as session:
            session.add(AnalysisLogModel.from_domain(entry))
            await session.commit()

    async def list_recent(
        self, symbol: Optional[str] = None, limit: int = 50,
    ) -> List[AnalysisLog]:
        query = select(AnalysisLogModel)
        if symbol is not None:
            query = query.where(AnalysisLogModel.symbol == symbol)
        query = query.order_by(desc(AnalysisLogModel.logged_at), desc(AnalysisLogModel.id))

        async with self._db.session() as session:
            result = await session.execute(query.limit(limit))
            return [m.to_domain() for m in result.scalars().all()]
