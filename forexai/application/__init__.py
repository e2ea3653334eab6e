"""
ForexAI – Application Layer
===========================
Orquesta el dominio: casos de uso, puertos hacia infraestructura y
estado en memoria (PriceCache, EngineConfigStore).

REGLA DE DEPENDENCIA:
Depende de domain/. NO importa de infrastructure/ ni presentation/.
"""
