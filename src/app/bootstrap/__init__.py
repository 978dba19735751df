"""Composition root do serviço.

O processo tem um único `ConnectionOrchestrator`: o registro de instâncias,
os streams SSE e as verificações de status vivem em memória e precisam ser
os mesmos para todas as requisições.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from app.observability import get_correlation_id
from config.logging import configure_logging
from config.settings import get_base_settings, get_evolution_settings

if TYPE_CHECKING:
    from app.coordinators.whatsapp.connection import ConnectionOrchestrator

SERVICE_NAME = "conecta_whatsapp"

logger = logging.getLogger(__name__)


def initialize_app() -> None:
    """Configura logging JSON com o nível de LOG_LEVEL."""
    configure_logging(
        level=get_base_settings().log_level,
        service_name=SERVICE_NAME,
        correlation_id_getter=get_correlation_id,
    )


def validate_runtime_settings() -> None:
    """Valida settings obrigatórias no startup.

    Em `staging`/`production` falha rápido para impedir boot inválido.
    Em `development` mantém alerta sem bloquear execução local.
    """
    base = get_base_settings()
    errors: list[str] = []

    errors.extend(f"base: {error}" for error in base.validate())
    errors.extend(f"evolution: {error}" for error in get_evolution_settings().validate())

    if not errors:
        logger.info(
            "settings_validated",
            extra={"component": "bootstrap", "result": "ok", "environment": base.environment},
        )
        return

    logger.warning(
        "settings_validation_failed",
        extra={
            "component": "bootstrap",
            "result": "failed",
            "environment": base.environment,
            "error_count": len(errors),
            "errors": errors,
        },
    )
    if base.is_strict:
        details = "\n".join(f"- {error}" for error in errors)
        raise RuntimeError(f"Configuração inválida para {base.environment}:\n{details}")


@lru_cache(maxsize=1)
def get_connection_orchestrator() -> ConnectionOrchestrator:
    """Obtém o orquestrador de conexão (singleton do processo)."""
    from app.bootstrap.dependencies import create_connection_orchestrator

    return create_connection_orchestrator()
