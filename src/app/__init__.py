"""App, coração do sistema: orquestração do ciclo de conexão.

Subpastas:
- bootstrap/: composition root (factories, inicialização, wiring)
- coordinators/: fluxo de pareamento (orquestrador, poller, broadcaster)
- domain/: modelos de sessão, status e eventos
- infra/: implementações concretas (registro em memória, sink SSE)
- protocols/: contratos/interfaces
- observability/: correlation_id para logs estruturados
"""
