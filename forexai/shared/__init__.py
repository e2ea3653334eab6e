"""
ForexAI – Shared Module
=======================
Utilidades transversales usadas por todas las capas.

- config/: Settings y EngineConfig
- logging/: Setup de logging

NOTA: Este módulo no contiene lógica de negocio.
"""

from forexai.shared.config.settings import settings
from forexai.shared.logging.logger import setup_logging, get_logger

__all__ = [
    "settings",
    "setup_logging",
    "get_logger",
]
