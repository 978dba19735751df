"""Connectors: adapters de borda para APIs externas.

Estrutura:
- evolution/: Evolution API (instâncias WhatsApp, QR code, envio de texto)
"""

__all__: list[str] = []
