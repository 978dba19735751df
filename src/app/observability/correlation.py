"""correlation_id por request, propagado nos logs estruturados.

O middleware HTTP abre um escopo com o header `x-correlation-id` (ou um
UUID novo). Tasks em background criadas dentro do request herdam o valor,
então logs de QR code e polling seguem correlacionados ao connect/stream
que os originou.

Uso:
    from app.observability import correlation_scope, get_correlation_id

    with correlation_scope(request.headers.get(CORRELATION_HEADER)):
        ...
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

CORRELATION_HEADER = "x-correlation-id"

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """correlation_id do contexto atual ("" fora de request)."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> Token[str]:
    """Define o correlation_id; None ou vazio gera um UUID novo."""
    return _correlation_id.set(correlation_id or generate_correlation_id())


def reset_correlation_id(token: Token[str]) -> None:
    _correlation_id.reset(token)


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Escopo com correlation_id definido; restaura o anterior ao sair."""
    token = set_correlation_id(correlation_id)
    try:
        yield _correlation_id.get()
    finally:
        reset_correlation_id(token)
