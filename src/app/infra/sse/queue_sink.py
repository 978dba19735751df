"""Sink SSE baseado em asyncio.Queue.

Os frames escritos pelo EventBroadcaster são consumidos por `frames()`,
que alimenta uma StreamingResponse. Encerramento pelo servidor
(`close()`) e desconexão do cliente (gerador finalizado/cancelado)
disparam os mesmos handlers, uma única vez.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from app.protocols.event_sink import SinkClosedError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

logger = logging.getLogger(__name__)

KEEPALIVE_FRAME = ": keep-alive\n\n"

# Headers recomendados para SSE atrás de proxies (nginx)
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class QueueEventSink:
    """Canal de push de uma sessão, consumido por um gerador assíncrono."""

    def __init__(self, keepalive_seconds: float = 15.0) -> None:
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._keepalive_seconds = keepalive_seconds
        self._closed = False
        self._handlers: list[Callable[[], None]] = []

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, frame: str) -> None:
        if self._closed:
            raise SinkClosedError("sink encerrado")
        self._queue.put_nowait(frame)

    def close(self) -> None:
        """Encerra o stream após drenar os frames já escritos."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)
        self._fire_close()

    def on_close(self, handler: Callable[[], None]) -> None:
        self._handlers.append(handler)

    async def frames(self) -> AsyncIterator[str]:
        """Itera frames até o sentinel de encerramento.

        Emite comentário keep-alive quando ocioso por `keepalive_seconds`.
        """
        try:
            while True:
                try:
                    frame = await asyncio.wait_for(
                        self._queue.get(),
                        timeout=self._keepalive_seconds,
                    )
                except TimeoutError:
                    if self._closed:
                        break
                    yield KEEPALIVE_FRAME
                    continue
                if frame is None:
                    break
                yield frame
        finally:
            # Cliente desconectou antes do encerramento pelo servidor
            if not self._closed:
                self._closed = True
                self._fire_close()

    def _fire_close(self) -> None:
        handlers, self._handlers = self._handlers, []
        for handler in handlers:
            try:
                handler()
            except Exception:
                logger.exception("sink_close_handler_failed")
