"""Filters aplicados ao handler raiz.

O QR code em base64 e a apikey da Evolution nunca chegam ao output: o
filter de redação troca o valor por `<redacted:N>`, onde N é o tamanho.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

SENSITIVE_FIELDS = frozenset({"qrcode", "api_key", "apikey", "token"})


class CorrelationIdFilter(logging.Filter):
    """Carimba `service` e `correlation_id` nos records.

    O id vem do `extra` quando informado; senão, do getter (o ContextVar da
    requisição ou da task em background que o herdou).
    """

    def __init__(
        self,
        service_name: str,
        correlation_id_getter: Callable[[], str] | None = None,
    ) -> None:
        super().__init__()
        self._service_name = service_name
        self._get_correlation_id = correlation_id_getter or (lambda: "")

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = self._get_correlation_id()
        record.service = self._service_name
        return True


class SensitiveFieldFilter(logging.Filter):
    """Substitui campos sensíveis passados via `extra` pelo seu tamanho."""

    def __init__(self, fields: frozenset[str] = SENSITIVE_FIELDS) -> None:
        super().__init__()
        self._fields = fields

    def filter(self, record: logging.LogRecord) -> bool:
        for name in self._fields:
            value = record.__dict__.get(name)
            if value:
                record.__dict__[name] = f"<redacted:{len(str(value))}>"
        return True
