"""Contrato do gateway com o provedor WhatsApp (Evolution API).

O app depende apenas deste protocolo; a implementação concreta vive em
api/connectors/evolution. Falhas do provedor chegam normalizadas:

- create_instance: levanta ProviderError (fatal para o connect)
- get_qr_code: None = "ainda não disponível"; exceção = chamada falhou
- check_status: nunca levanta; degrada para ConnectionStatus.error()
- delete_instance: best-effort; nunca levanta
- send_message: levanta NoConnectedInstanceError sem instância conectada
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from app.domain.connection import ConnectionStatus


class ConnectionGatewayProtocol(Protocol):
    """Operações consumidas pelo ciclo de conexão."""

    async def create_instance(self, session_id: str) -> str: ...

    async def get_qr_code(self, instance_name: str) -> str | None: ...

    async def check_status(self, instance_name: str) -> ConnectionStatus: ...

    async def delete_instance(self, instance_name: str) -> None: ...

    async def send_message(self, phone_number: str, text: str) -> bool: ...
