"""
ForexAI – Presentation Layer
============================
API REST (FastAPI) y broadcast WebSocket hacia el frontend.
"""
