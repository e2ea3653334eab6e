"""Domain value objects."""
from forexai.domain.value_objects.tick import PriceTick, PriceSnapshot
from forexai.domain.value_objects.indicator_set import (
    IndicatorSet,
    MACDSeries,
    BollingerBands,
    StochasticSeries,
)
from forexai.domain.value_objects.market_context import (
    PatternFlags,
    SupportResistance,
    TrendInfo,
    VolumeInfo,
)

__all__ = [
    "PriceTick",
    "PriceSnapshot",
    "IndicatorSet",
    "MACDSeries",
    "BollingerBands",
    "StochasticSeries",
    "PatternFlags",
    "SupportResistance",
    "TrendInfo",
    "VolumeInfo",
]
