"""
ForexAI – Domain Exceptions
===========================
Excepciones del núcleo de trading.

JERARQUÍA:
    DomainError (base)
    ├── InsufficientDataError      → análisis abortado, degrada a HOLD
    ├── UnsupportedSymbolError     → símbolo sin mapeo en el feed
    ├── FeedConnectivityError      → feed caído / request sin respuesta
    ├── BrokerExecutionError       → orden live rechazada, no hay Trade
    ├── ConfigValidationError      → payload de configuración inválido
    ├── InvalidTradeError          → trade inválido o transición ilegal
    ├── AnalysisInProgressError    → ya hay un análisis en curso
    └── ValidationError            → validación general de datos
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class DomainError(Exception):
    """Excepción base para errores de dominio."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": self.message,
        }


class InsufficientDataError(DomainError):
    """No hay suficientes velas para un cálculo fiable."""

    def __init__(self, message: str, required: int = None, available: int = None):
        super().__init__(message, code="INSUFFICIENT_DATA")
        self.required = required
        self.available = available


class UnsupportedSymbolError(DomainError):
    """El símbolo no está mapeado por el adaptador del feed."""

    def __init__(self, symbol: str):
        super().__init__(f"Símbolo no soportado: {symbol}", code="UNSUPPORTED_SYMBOL")
        self.symbol = symbol


class FeedConnectivityError(DomainError):
    """Error de conectividad con el feed de mercado."""

    def __init__(self, message: str, attempts: int = None):
        super().__init__(message, code="FEED_CONNECTIVITY")
        self.attempts = attempts


class BrokerExecutionError(DomainError):
    """El broker rechazó (o no confirmó) una orden live."""

    def __init__(self, message: str, symbol: str = None, broker_code: str = None):
        super().__init__(message, code="BROKER_EXECUTION")
        self.symbol = symbol
        self.broker_code = broker_code


class ConfigValidationError(DomainError):
    """Payload de configuración malformado; la configuración vigente no cambia."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message, code="CONFIG_VALIDATION")
        self.errors = errors or []

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class InvalidTradeError(DomainError):
    """Trade con datos inválidos o transición de estado ilegal."""

    def __init__(self, message: str, trade_id: str = None):
        super().__init__(message, code="INVALID_TRADE")
        self.trade_id = trade_id


class AnalysisInProgressError(DomainError):
    """Ya hay un análisis en vuelo para el símbolo."""

    def __init__(self, symbol: str):
        super().__init__(
            f"Análisis ya en curso para {symbol}", code="ANALYSIS_IN_PROGRESS"
        )
        self.symbol = symbol


class ValidationError(DomainError):
    """Error de validación general de datos de dominio."""

    def __init__(self, message: str, field: str = None, value: Any = None):
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field
        self.value = value
