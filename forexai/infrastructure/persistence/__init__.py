"""Persistencia: SQLAlchemy async (MySQL / SQLite) e implementaciones en memoria."""
from forexai.infrastructure.persistence.database import Base, DatabaseManager, get_db_manager

__all__ = ["Base", "DatabaseManager", "get_db_manager"]
