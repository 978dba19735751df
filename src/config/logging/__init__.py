"""Configuração de logging estruturado.

Re-exporta funções e classes para configuração de logging JSON.

Uso:
    from config.logging import configure_logging, get_logger

    # Na inicialização (bootstrap)
    configure_logging(level="INFO", service_name="conecta_whatsapp")

    # Em qualquer módulo
    logger = get_logger(__name__)
    logger.info("instance_created", extra={"instance_name": "wa_1"})

Campos obrigatórios em todo log:
- correlation_id
- service
- level
- logger
- message
- timestamp (ISO-8601 UTC)

QR codes e tokens nunca são logados; o filter de redação substitui
campos sensíveis pelo tamanho do valor.
"""

from config.logging.config import configure_logging, get_logger, log_duration
from config.logging.filters import CorrelationIdFilter, SensitiveFieldFilter
from config.logging.formatters import (
    FIELD_RENAME_MAP,
    REQUIRED_LOG_FIELDS,
    create_json_formatter,
)

__all__ = [
    "FIELD_RENAME_MAP",
    "REQUIRED_LOG_FIELDS",
    # Filters
    "CorrelationIdFilter",
    "SensitiveFieldFilter",
    # Configuração principal
    "configure_logging",
    # Formatters
    "create_json_formatter",
    "get_logger",
    "log_duration",
]
