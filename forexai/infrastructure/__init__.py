"""
ForexAI – Infrastructure Layer
==============================
Implementaciones concretas de los puertos: feed (Deriv / simulado),
EventBus y persistencia (SQLAlchemy / memoria).
"""
