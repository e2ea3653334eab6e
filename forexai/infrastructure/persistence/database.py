"""
ForexAI – SQLAlchemy Async Database
===================================
Base declarativa de los modelos ORM y manager del engine async.

- Producción: MySQL vía aiomysql.
- Tests / local: SQLite vía aiosqlite (en memoria con StaticPool, así
  todas las sesiones comparten la misma conexión).

Los repositorios dependen de interfaces de dominio, no de esta clase.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from sqlalchemy import BigInteger, Integer, MetaData
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from forexai.shared.config.settings import Settings
from forexai.shared.logging.logger import get_logger

logger = get_logger("database")

# ─── Naming Convention (para migraciones consistentes) ─────────────────────
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# SQLite solo autoincrementa INTEGER PRIMARY KEY
BIGINT_PK = BigInteger().with_variant(Integer, "sqlite")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base declarativa para todos los modelos ORM."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class DatabaseManager:
    """
    Manager del engine async y la session factory.

    USO:
        db = DatabaseManager(settings)
        await db.initialize()          # startup de FastAPI
        await db.create_all()          # opcional (dev / tests)

        async with db.session() as session:
            result = await session.execute(...)

        await db.close()               # shutdown de FastAPI
    """

    def __init__(self, settings: Optional[Settings] = None, url: Optional[str] = None):
        self._settings = settings or Settings()
        self._url = url
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def database_url(self) -> str:
        """URL explícita, `db_url` de settings, o MySQL desde db_*."""
        if self._url:
            return self._url
        s = self._settings
        if s.db_url:
            return s.db_url
        return (
            f"mysql+aiomysql://{s.db_user}:{s.db_password}"
            f"@{s.db_host}:{s.db_port}/{s.db_name}"
            f"?charset=utf8mb4"
        )

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    async def initialize(self) -> None:
        """Inicializa el engine async y la session factory."""
        if self._engine is not None:
            return

        url = self.database_url
        s = self._settings
        if url.startswith("sqlite"):
            self._engine = create_async_engine(
                url,
                echo=s.db_echo,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            self._engine = create_async_engine(
                url,
                echo=s.db_echo,
                pool_size=s.db_pool_size,
                max_overflow=s.db_max_overflow,
                pool_recycle=3600,
                pool_pre_ping=True,
            )

        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info("✓ Engine de base de datos inicializado (%s)", url.split("://")[0])

    async def create_all(self) -> None:
        """Crea las tablas que no existan."""
        if self._engine is None:
            raise RuntimeError("DatabaseManager no inicializado. Llama a initialize() primero.")
        # Registra los modelos en Base.metadata
        from forexai.infrastructure.persistence import models  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Tablas verificadas/creadas")

    async def close(self) -> None:
        """Cierra el engine y todas las conexiones del pool."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Engine de base de datos cerrado")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Sesión con rollback automático ante error."""
        if self._session_factory is None:
            raise RuntimeError("DatabaseManager no inicializado. Llama a initialize() primero.")

        async with self._session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise


# ─── Instancia global ────────────────────────────────────────────────────
_db_manager: Optional[DatabaseManager] = None


def get_db_manager(settings: Optional[Settings] = None) -> DatabaseManager:
    """Obtiene la instancia global del DatabaseManager."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager(settings)
    return _db_manager
