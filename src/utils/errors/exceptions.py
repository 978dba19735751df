"""Exceções do ciclo de conexão WhatsApp.

Cada exceção carrega um `code` estável (exposto em eventos SSE e respostas
HTTP) e o `http_status` usado pelo handler da API.
"""

from __future__ import annotations


class WhatsAppConnectionError(Exception):
    """Base para falhas do ciclo de conexão."""

    code: str = "WHATSAPP_CONNECTION_ERROR"
    http_status: int = 500
    default_message: str = "Falha no ciclo de conexão WhatsApp"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ProviderError(WhatsAppConnectionError):
    """Chamada ao provedor externo falhou (rede, auth, 5xx)."""

    code = "PROVIDER_ERROR"
    http_status = 502
    default_message = "Falha na chamada à Evolution API"

    def __init__(
        self,
        message: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code


class InstanceNotFoundError(WhatsAppConnectionError):
    """Nenhuma instância registrada para o sessionId."""

    code = "INSTANCE_NOT_FOUND"
    http_status = 404
    default_message = "Instância não encontrada para este sessionId"

    def __init__(self, session_id: str = "", message: str | None = None) -> None:
        super().__init__(message)
        self.session_id = session_id


class QRCodeTimeoutError(WhatsAppConnectionError):
    """Tentativas de obter QR code esgotadas."""

    code = "QR_CODE_TIMEOUT"
    http_status = 504
    default_message = "Timeout ao aguardar QR code da Evolution API"


class StatusPollTimeoutError(WhatsAppConnectionError):
    """Prazo máximo de verificação de status expirou."""

    code = "STATUS_POLL_TIMEOUT"
    http_status = 504
    default_message = "Timeout ao aguardar conexão da instância"


class NoConnectedInstanceError(WhatsAppConnectionError):
    """Envio de mensagem sem instância conectada."""

    code = "NO_CONNECTED_INSTANCE"
    http_status = 409
    default_message = "Nenhuma instância WhatsApp conectada"


class InstanceCreationFailedError(ProviderError):
    """Falha ao criar instância no connect (resposta HTTP 500)."""

    code = "INSTANCE_CREATION_FAILED"
    http_status = 500
    default_message = "Falha ao criar instância WhatsApp"


class MissingSessionIdError(WhatsAppConnectionError):
    """Request sem sessionId (query, body ou header)."""

    code = "MISSING_SESSION_ID"
    http_status = 400
    default_message = "sessionId é obrigatório"
