"""Conector Evolution API: adapter de borda para o provedor WhatsApp.

Responsabilidades:
- Cliente HTTP com retry/backoff
- Criação/remoção de instâncias, QR code, estado de conexão
- Envio de texto pela instância conectada
"""

from .gateway import (
    EvolutionGateway,
    build_instance_name,
    create_evolution_gateway,
    normalize_phone_number,
)
from .http_client import EvolutionHttpClient, HttpClientConfig, HttpError

__all__ = [
    "EvolutionGateway",
    "EvolutionHttpClient",
    "HttpClientConfig",
    "HttpError",
    "build_instance_name",
    "create_evolution_gateway",
    "normalize_phone_number",
]
