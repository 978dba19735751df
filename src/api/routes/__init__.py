"""Rotas HTTP da API: adapters de entrada.

Responsabilidades:
- Definir endpoints HTTP (conexão WhatsApp, health)
- Extrair sessionId de body/query/header
- Delegar para o ConnectionOrchestrator
- Traduzir exceções em respostas `{error, message, timestamp}`

Agregação:
- router.py: registra todos os routers no app principal
- errors.py: handlers de exceção
"""

from __future__ import annotations

from api.routes.errors import register_exception_handlers
from api.routes.router import create_api_router

__all__ = ["create_api_router", "register_exception_handlers"]
