"""Transporte SSE para o stream de conexão."""

from __future__ import annotations

from app.infra.sse.queue_sink import KEEPALIVE_FRAME, SSE_HEADERS, QueueEventSink

__all__ = [
    "KEEPALIVE_FRAME",
    "SSE_HEADERS",
    "QueueEventSink",
]
