"""API: camada de borda.

Subpastas:
- connectors/: adapters HTTP para o provedor WhatsApp (Evolution API)
- routes/: endpoints HTTP (conexão WhatsApp, health)

NÃO PODE conter: regras do ciclo de conexão, polling, orquestração.
"""
