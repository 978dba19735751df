"""Ciclo de conexão WhatsApp: QR code, stream SSE e verificação de status."""

from app.coordinators.whatsapp.connection.background_tasks import TaskTracker
from app.coordinators.whatsapp.connection.event_broadcaster import (
    CONNECTED_FRAME,
    EventBroadcaster,
    format_sse_frame,
)
from app.coordinators.whatsapp.connection.orchestrator import ConnectionOrchestrator
from app.coordinators.whatsapp.connection.status_poller import PollHandle, StatusPoller

__all__ = [
    "CONNECTED_FRAME",
    "ConnectionOrchestrator",
    "EventBroadcaster",
    "PollHandle",
    "StatusPoller",
    "TaskTracker",
    "format_sse_frame",
]
