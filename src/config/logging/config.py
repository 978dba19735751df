"""Configuração centralizada de logging.

Uso:
    from config.logging import configure_logging, get_logger

    configure_logging(level="INFO", service_name="conecta_whatsapp")

    logger = get_logger(__name__)
    logger.info("status_changed", extra={"instance_name": "wa_1"})
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from config.logging.filters import CorrelationIdFilter, SensitiveFieldFilter
from config.logging.formatters import create_json_formatter

if TYPE_CHECKING:
    from collections.abc import Callable

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
DEFAULT_SERVICE_NAME = "conecta_whatsapp"

# httpx loga cada GET de connectionState; o access log do uvicorn repete
# cada request do SSE.
_QUIET_LOGGERS = {"httpx": "WARNING", "httpcore": "WARNING", "uvicorn.access": "WARNING"}


def configure_logging(
    level: str = "INFO",
    service_name: str = DEFAULT_SERVICE_NAME,
    correlation_id_getter: Callable[[], str] | None = None,
) -> None:
    """Instala um único handler JSON no root logger.

    Chamada por `initialize_app()`; chamadas repetidas substituem o handler.

    Raises:
        ValueError: Nível desconhecido.
    """
    normalized = level.strip().upper()
    if normalized not in VALID_LOG_LEVELS:
        raise ValueError(f"Nível de log inválido: {level}")

    handler = logging.StreamHandler()
    handler.setLevel(normalized)
    handler.setFormatter(create_json_formatter())
    handler.addFilter(CorrelationIdFilter(service_name, correlation_id_getter))
    handler.addFilter(SensitiveFieldFilter())

    root = logging.getLogger()
    root.setLevel(normalized)
    root.handlers = [handler]

    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


def get_logger(name: str) -> logging.Logger:
    """Atalho para `logging.getLogger`."""
    return logging.getLogger(name)


def log_duration(
    logger: logging.Logger,
    event: str,
    started_at: float,
    *,
    clock: Callable[[], float] = time.monotonic,
    **fields: object,
) -> float:
    """Loga evento com duração decorrida desde `started_at`.

    Args:
        logger: Logger instance.
        event: Nome do evento (snake_case).
        started_at: Instante inicial no mesmo relógio de `clock`.
        clock: Relógio monotônico (injetável em testes).
        **fields: Campos extras (sem PII).

    Returns:
        Duração em milissegundos.
    """
    elapsed_ms = round((clock() - started_at) * 1000, 2)
    logger.info(event, extra={**fields, "elapsed_ms": elapsed_ms})
    return elapsed_ms
