"""Settings da integração com a Evolution API (WhatsApp).

Configurações do gateway de instâncias e dos temporizadores do ciclo
de conexão (QR code, verificação de status, stream SSE).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_INSTANCE_PREFIX: str = "neuropgrag"
DEFAULT_INTEGRATION: str = "WHATSAPP-BAILEYS"


@dataclass(frozen=True)
class EvolutionSettings:
    """Configurações da Evolution API e do ciclo de conexão.

    Attributes:
        api_url: URL base da Evolution API
        api_key: Chave global enviada no header `apikey`
        instance_prefix: Prefixo dos nomes de instância gerados
        integration: Tipo de integração ao criar instância
        check_interval_seconds: Intervalo entre verificações de status
        status_timeout_seconds: Prazo máximo de verificação por instância
        qr_max_attempts: Máximo de tentativas para obter o QR code
        qr_interval_seconds: Intervalo entre tentativas de QR code
        close_grace_seconds: Espera antes de encerrar o stream após status final
        stream_keepalive_seconds: Intervalo de comentários keep-alive no SSE
        request_timeout_seconds: Timeout das requisições HTTP
        max_retries: Retentativas em 429/5xx/erros de conexão
    """

    api_url: str = ""
    api_key: str = ""
    instance_prefix: str = DEFAULT_INSTANCE_PREFIX
    integration: str = DEFAULT_INTEGRATION

    # Ciclo de conexão
    check_interval_seconds: float = 30.0
    status_timeout_seconds: float = 300.0  # 5 min
    qr_max_attempts: int = 20
    qr_interval_seconds: float = 1.0
    close_grace_seconds: float = 1.0
    stream_keepalive_seconds: float = 15.0

    # HTTP
    request_timeout_seconds: float = 30.0
    max_retries: int = 2

    @property
    def base_url(self) -> str:
        """URL base sem barra final."""
        return self.api_url.rstrip("/")

    @property
    def qr_budget_seconds(self) -> float:
        """Tempo total aproximado reservado para obter o QR code."""
        return self.qr_max_attempts * self.qr_interval_seconds

    def validate(self) -> list[str]:
        """Valida configurações mínimas da Evolution API.

        Returns:
            Lista de erros de validação (vazia = tudo OK).
        """
        errors: list[str] = []

        if not self.api_url:
            errors.append("EVOLUTION_API_URL não configurado")

        if not self.api_key:
            errors.append("EVOLUTION_API_KEY não configurado")

        if not self.instance_prefix:
            errors.append("EVOLUTION_INSTANCE_PREFIX não pode ser vazio")

        if self.check_interval_seconds <= 0:
            errors.append("EVOLUTION_CHECK_INTERVAL_SECONDS deve ser > 0")

        if self.status_timeout_seconds <= 0:
            errors.append("EVOLUTION_STATUS_TIMEOUT_SECONDS deve ser > 0")

        if self.qr_max_attempts < 1:
            errors.append("EVOLUTION_QR_MAX_ATTEMPTS deve ser >= 1")

        if self.qr_interval_seconds < 0:
            errors.append("EVOLUTION_QR_INTERVAL_SECONDS deve ser >= 0")

        if self.close_grace_seconds < 0:
            errors.append("EVOLUTION_CLOSE_GRACE_SECONDS deve ser >= 0")

        if self.stream_keepalive_seconds <= 0:
            errors.append("EVOLUTION_STREAM_KEEPALIVE_SECONDS deve ser > 0")

        if self.request_timeout_seconds <= 0:
            errors.append("EVOLUTION_REQUEST_TIMEOUT_SECONDS deve ser > 0")

        if self.max_retries < 0:
            errors.append("EVOLUTION_MAX_RETRIES deve ser >= 0")

        return errors


def _load_from_env() -> EvolutionSettings:
    """Carrega EvolutionSettings a partir de variáveis de ambiente."""
    return EvolutionSettings(
        api_url=os.getenv("EVOLUTION_API_URL", ""),
        api_key=os.getenv("EVOLUTION_API_KEY", ""),
        instance_prefix=os.getenv("EVOLUTION_INSTANCE_PREFIX", DEFAULT_INSTANCE_PREFIX),
        integration=os.getenv("EVOLUTION_INTEGRATION", DEFAULT_INTEGRATION),
        check_interval_seconds=float(
            os.getenv("EVOLUTION_CHECK_INTERVAL_SECONDS", "30")
        ),
        status_timeout_seconds=float(
            os.getenv("EVOLUTION_STATUS_TIMEOUT_SECONDS", "300")
        ),
        qr_max_attempts=int(os.getenv("EVOLUTION_QR_MAX_ATTEMPTS", "20")),
        qr_interval_seconds=float(os.getenv("EVOLUTION_QR_INTERVAL_SECONDS", "1")),
        close_grace_seconds=float(os.getenv("EVOLUTION_CLOSE_GRACE_SECONDS", "1")),
        stream_keepalive_seconds=float(
            os.getenv("EVOLUTION_STREAM_KEEPALIVE_SECONDS", "15")
        ),
        request_timeout_seconds=float(
            os.getenv("EVOLUTION_REQUEST_TIMEOUT_SECONDS", "30")
        ),
        max_retries=int(os.getenv("EVOLUTION_MAX_RETRIES", "2")),
    )


@lru_cache(maxsize=1)
def get_evolution_settings() -> EvolutionSettings:
    """Retorna instância cacheada de EvolutionSettings.

    A cache garante singleton para múltiplas injeções.
    """
    return _load_from_env()
