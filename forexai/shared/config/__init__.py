"""Configuración."""
from forexai.shared.config.settings import EngineConfig, Settings, TIMEFRAMES, settings

__all__ = ["EngineConfig", "Settings", "TIMEFRAMES", "settings"]
