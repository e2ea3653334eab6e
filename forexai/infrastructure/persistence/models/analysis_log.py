"""
ForexAI – Analysis Log ORM Model
================================
Tabla `analysis_logs`: registro append-only de análisis, decisiones,
trades y errores. El payload completo va en una columna JSON.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, BigInteger, DateTime, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from forexai.domain.entities.decision import AnalysisLog, LogType
from forexai.infrastructure.persistence.database import BIGINT_PK, Base, utcnow


class AnalysisLogModel(Base):
    __tablename__ = "analysis_logs"

    id: Mapped[int] = mapped_column(BIGINT_PK, primary_key=True, autoincrement=True)
    log_type: Mapped[str] = mapped_column(String(16), nullable=False)
    symbol: Mapped[Optional[str]] = mapped_column(String(12), default=None)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    confidence: Mapped[float] = mapped_column(Numeric(6, 3, asdecimal=False), default=0.0)
    data: Mapped[Optional[dict]] = mapped_column(JSON, default=None)
    user_id: Mapped[Optional[str]] = mapped_column(String(64), default=None)
    logged_at: Mapped[int] = mapped_column(BigInteger, nullable=False, comment="Epoch ms")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False,
    )

    __table_args__ = (
        Index("idx_analysis_logs_symbol_time", "symbol", "logged_at"),
    )

    def to_domain(self) -> AnalysisLog:
        return AnalysisLog(
            log_type=LogType(self.log_type),
            symbol=self.symbol,
            message=self.message,
            confidence=self.confidence or 0.0,
            data=self.data or {},
            user_id=self.user_id,
            created_at=self.logged_at / 1000,
        )

    @classmethod
    def from_domain(cls, log: AnalysisLog) -> "AnalysisLogModel":
        return cls(
            log_type=log.log_type.value,
            symbol=log.symbol,
            message=log.message,
            confidence=log.confidence,
            data=log.data or None,
            user_id=log.user_id,
            logged_at=int(log.created_at * 1000),
        )
