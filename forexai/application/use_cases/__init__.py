"""Casos de uso de la capa de aplicación."""
from forexai.application.use_cases.analyze_market_usecase import AnalyzeMarketUseCase
from forexai.application.use_cases.auto_trade_usecase import AutoTradeUseCase
from forexai.application.use_cases.close_trade_usecase import CloseTradeUseCase
from forexai.application.use_cases.execute_trade_usecase import ExecuteTradeUseCase
from forexai.application.use_cases.process_feed_usecase import IngestionPipeline

__all__ = [
    "AnalyzeMarketUseCase",
    "AutoTradeUseCase",
    "CloseTradeUseCase",
    "ExecuteTradeUseCase",
    "IngestionPipeline",
]
