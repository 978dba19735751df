"""EventBroadcaster: um stream SSE por sessionId.

Formata eventos no padrão SSE (`event: <tipo>\\ndata: <json>\\n\\n`) e os
escreve no sink da sessão. Escrita em sink quebrado equivale a um
encerramento implícito: o stream é desregistrado e `publish` retorna
False, nunca propaga exceção.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from app.domain.connection import StreamEvent
    from app.protocols.event_sink import EventSinkProtocol

logger = logging.getLogger(__name__)

CONNECTED_FRAME = ": SSE connection established\n\n"

_LOG_PREVIEW_CHARS = 100


def format_sse_frame(event: StreamEvent) -> str:
    """Serializa evento no formato text/event-stream."""
    data = json.dumps(event.data, ensure_ascii=False)
    return f"event: {event.type}\ndata: {data}\n\n"


class EventBroadcaster:
    """Dono exclusivo dos sinks SSE ativos, chaveados por session_id."""

    def __init__(self) -> None:
        self._streams: dict[str, EventSinkProtocol] = {}

    def subscribe(self, session_id: str, sink: EventSinkProtocol) -> None:
        """Registra o stream da sessão e escreve o frame inicial.

        Um stream anterior da mesma sessão é encerrado e substituído.
        """
        previous = self._streams.get(session_id)
        if previous is not None and previous is not sink:
            logger.warning("sse_stream_replaced", extra={"session_id": session_id})
            self._streams.pop(session_id, None)
            self._safe_close(session_id, previous)

        self._streams[session_id] = sink
        sink.on_close(lambda: self._on_sink_closed(session_id, sink))

        try:
            sink.write(CONNECTED_FRAME)
        except Exception as exc:
            logger.warning(
                "sse_initial_write_failed",
                extra={"session_id": session_id, "error_type": type(exc).__name__},
            )
            self._streams.pop(session_id, None)
            return

        logger.info(
            "sse_stream_subscribed",
            extra={"session_id": session_id, "active_streams": len(self._streams)},
        )

    def publish(self, session_id: str, event: StreamEvent) -> bool:
        """Escreve o evento no stream da sessão.

        Returns:
            True se entregue; False sem assinante ou se a escrita falhou.
        """
        sink = self._streams.get(session_id)
        if sink is None:
            logger.warning(
                "sse_publish_without_subscriber",
                extra={"session_id": session_id, "event_type": str(event.type)},
            )
            return False

        frame = format_sse_frame(event)
        try:
            sink.write(frame)
        except Exception as exc:
            logger.warning(
                "sse_publish_failed",
                extra={
                    "session_id": session_id,
                    "event_type": str(event.type),
                    "error_type": type(exc).__name__,
                },
            )
            if self._streams.get(session_id) is sink:
                del self._streams[session_id]
            return False

        logger.debug(
            "sse_event_published",
            extra={
                "session_id": session_id,
                "event_type": str(event.type),
                "preview": frame[:_LOG_PREVIEW_CHARS] if event.type != "qrcode" else "",
            },
        )
        return True

    def close(self, session_id: str, final_event: StreamEvent | None = None) -> None:
        """Publica o evento final (opcional), encerra e desregistra o stream.

        Idempotente: sessão sem stream gera apenas warning.
        """
        sink = self._streams.get(session_id)
        if sink is None:
            logger.warning("sse_close_without_stream", extra={"session_id": session_id})
            return

        if final_event is not None:
            self.publish(session_id, final_event)

        if self._streams.get(session_id) is sink:
            del self._streams[session_id]
        self._safe_close(session_id, sink)
        logger.info(
            "sse_stream_closed",
            extra={"session_id": session_id, "active_streams": len(self._streams)},
        )

    def broadcast(
        self,
        event: StreamEvent,
        session_ids: Iterable[str] | None = None,
    ) -> int:
        """Publica o evento para várias sessões (todas, por padrão).

        Returns:
            Quantidade de streams que receberam o evento.
        """
        targets = list(session_ids) if session_ids is not None else list(self._streams)
        delivered = sum(1 for session_id in targets if self.publish(session_id, event))
        logger.info(
            "sse_broadcast_sent",
            extra={"delivered": delivered, "targets": len(targets)},
        )
        return delivered

    def close_all(self, final_event: StreamEvent | None = None) -> int:
        """Encerra todos os streams (shutdown gracioso)."""
        session_ids = list(self._streams)
        for session_id in session_ids:
            self.close(session_id, final_event)
        return len(session_ids)

    def has_stream(self, session_id: str) -> bool:
        return session_id in self._streams

    @property
    def count(self) -> int:
        return len(self._streams)

    def active_sessions(self) -> list[str]:
        return list(self._streams)

    def _on_sink_closed(self, session_id: str, sink: EventSinkProtocol) -> None:
        # Só remove se ainda for o sink registrado (pode ter sido substituído)
        if self._streams.get(session_id) is sink:
            del self._streams[session_id]
            logger.info(
                "sse_client_disconnected",
                extra={"session_id": session_id, "active_streams": len(self._streams)},
            )

    @staticmethod
    def _safe_close(session_id: str, sink: EventSinkProtocol) -> None:
        try:
            sink.close()
        except Exception:
            logger.exception("sse_sink_close_failed", extra={"session_id": session_id})
