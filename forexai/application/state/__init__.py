"""Estado en memoria de la capa de aplicación."""
from forexai.application.state.price_cache import PriceCache
from forexai.application.state.engine_config_store import EngineConfigStore

__all__ = ["PriceCache", "EngineConfigStore"]
