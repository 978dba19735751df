"""Contrato do canal de push (stream SSE) de uma sessão.

O EventBroadcaster só enxerga esta capacidade opaca; o transporte real
(StreamingResponse, websocket, fake de teste) fica atrás dela.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable


class SinkClosedError(RuntimeError):
    """Escrita em um sink já encerrado."""


class EventSinkProtocol(Protocol):
    """Sink de frames SSE com detecção de encerramento."""

    @property
    def closed(self) -> bool: ...

    def write(self, frame: str) -> None:
        """Escreve um frame; levanta SinkClosedError se encerrado."""
        ...

    def close(self) -> None:
        """Encerra o transporte; idempotente."""
        ...

    def on_close(self, handler: Callable[[], None]) -> None:
        """Registra handler chamado uma única vez no encerramento."""
        ...
