"""ForexAI – núcleo de análisis de mercado, ingestión y ejecución FOREX."""

__version__ = "1.0.0"
