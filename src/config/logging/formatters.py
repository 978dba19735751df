"""Formatter JSON dos logs do serviço.

Cada linha traz `timestamp` (ISO-8601 UTC), `level`, `logger`, `message`,
`correlation_id`, `service` e os campos passados via `extra`.
"""

from __future__ import annotations

import time

from pythonjsonlogger.json import JsonFormatter

REQUIRED_LOG_FIELDS = (
    "asctime",
    "levelname",
    "name",
    "message",
    "correlation_id",
    "service",
)

FIELD_RENAME_MAP = {
    "asctime": "timestamp",
    "levelname": "level",
    "name": "logger",
}

ISO_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def create_json_formatter() -> JsonFormatter:
    """Formatter JSON com nomes de campo padronizados.

    Exemplo:
        {"timestamp": "2026-02-02T10:30:00+0000", "level": "INFO",
         "logger": "app.coordinators.whatsapp.connection.status_poller",
         "message": "status_changed", "correlation_id": "abc-123",
         "service": "conecta_whatsapp", "instance_name": "neuropgrag_1738492200000_1a2b3c4d"}
    """
    formatter = JsonFormatter(
        " ".join(f"%({field})s" for field in REQUIRED_LOG_FIELDS),
        rename_fields=FIELD_RENAME_MAP,
        datefmt=ISO_DATE_FORMAT,
        json_ensure_ascii=False,
    )
    formatter.converter = time.gmtime
    return formatter
