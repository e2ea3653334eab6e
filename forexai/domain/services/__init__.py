"""
Domain services (lógica pura, sin I/O).
"""
from forexai.domain.services.indicator_calculator import IndicatorCalculator
from forexai.domain.services.pattern_detector import PatternDetector
from forexai.domain.services.decision_engine import DecisionConfig, DecisionEngine
from forexai.domain.services.risk_calculator import RiskCalculator, RiskConfig

__all__ = [
    "IndicatorCalculator",
    "PatternDetector",
    "DecisionConfig",
    "DecisionEngine",
    "RiskCalculator",
    "RiskConfig",
]
