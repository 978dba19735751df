"""Endpoints do ciclo de conexão WhatsApp (pareamento por QR code).

Endpoints:
- POST /connect: cria instância e registra a sessão
- GET /connect/stream: stream SSE com QR code e mudanças de status
- GET /status: consulta pontual do status
- DELETE /disconnect: encerra a sessão e remove a instância
- POST /messages: envia texto pela instância conectada
- GET /connections: diagnóstico de sessões, streams e verificações

O sessionId pode vir do body, da query (`sessionId`) ou do header
`x-session-id`.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Body, Depends, Header, Query
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from app.bootstrap import get_connection_orchestrator
from app.coordinators.whatsapp.connection import ConnectionOrchestrator
from app.domain.connection import utc_now_iso
from app.infra.sse import SSE_HEADERS, QueueEventSink
from config.settings import get_evolution_settings
from utils.errors import (
    InstanceCreationFailedError,
    MissingSessionIdError,
    ProviderError,
)

logger = logging.getLogger(__name__)

router = APIRouter()

Orchestrator = Annotated[ConnectionOrchestrator, Depends(get_connection_orchestrator)]
SessionIdQuery = Annotated[str | None, Query(alias="sessionId")]
SessionIdHeader = Annotated[str | None, Header(alias="x-session-id")]


class SessionRequest(BaseModel):
    """Body opcional com sessionId."""

    sessionId: str | None = None


class SendMessageRequest(BaseModel):
    """Body de envio de texto."""

    phoneNumber: str = Field(min_length=1)
    text: str = Field(min_length=1)


def _resolve_session_id(*candidates: str | None) -> str | None:
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    return None


def _require_session_id(*candidates: str | None) -> str:
    session_id = _resolve_session_id(*candidates)
    if session_id is None:
        raise MissingSessionIdError()
    return session_id


@router.post("/connect")
async def connect(
    orchestrator: Orchestrator,
    body: Annotated[SessionRequest | None, Body()] = None,
    x_session_id: SessionIdHeader = None,
) -> dict[str, str]:
    """Cria instância no provedor; QR code chega pelo stream."""
    session_id = _resolve_session_id(body.sessionId if body else None, x_session_id)
    try:
        result = await orchestrator.connect(session_id)
    except ProviderError as exc:
        raise InstanceCreationFailedError(exc.message, status_code=exc.status_code) from exc

    return {
        "sessionId": result.session_id,
        "instanceName": result.instance_name,
        "message": "Instância criada. Abra o stream para receber o QR code.",
        "timestamp": utc_now_iso(),
    }


@router.get("/connect/stream")
async def connect_stream(
    orchestrator: Orchestrator,
    session_id: SessionIdQuery = None,
    x_session_id: SessionIdHeader = None,
) -> StreamingResponse:
    """Stream SSE: `qrcode`, `status` e `error` até o status final."""
    resolved = _require_session_id(session_id, x_session_id)
    sink = QueueEventSink(keepalive_seconds=get_evolution_settings().stream_keepalive_seconds)
    orchestrator.open_stream(resolved, sink)
    return StreamingResponse(
        sink.frames(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get("/status")
async def connection_status(
    orchestrator: Orchestrator,
    session_id: SessionIdQuery = None,
    x_session_id: SessionIdHeader = None,
) -> dict[str, object]:
    resolved = _require_session_id(session_id, x_session_id)
    status = await orchestrator.get_status(resolved)
    return status.to_dict()


@router.delete("/disconnect")
async def disconnect(
    orchestrator: Orchestrator,
    session_id: SessionIdQuery = None,
    body: Annotated[SessionRequest | None, Body()] = None,
    x_session_id: SessionIdHeader = None,
) -> dict[str, object]:
    """Encerra a sessão; sucesso mesmo se o provedor falhar na remoção."""
    resolved = _require_session_id(
        session_id,
        body.sessionId if body else None,
        x_session_id,
    )
    instance_name = await orchestrator.disconnect(resolved)
    return {
        "success": True,
        "message": "WhatsApp desconectado",
        "instanceName": instance_name,
        "timestamp": utc_now_iso(),
    }


@router.post("/messages")
async def send_message(
    orchestrator: Orchestrator,
    body: SendMessageRequest,
) -> dict[str, object]:
    await orchestrator.send_message(body.phoneNumber, body.text)
    return {"success": True, "timestamp": utc_now_iso()}


@router.get("/connections")
async def connections(orchestrator: Orchestrator) -> dict[str, object]:
    """Snapshot de diagnóstico do processo."""
    return {**orchestrator.snapshot(), "timestamp": utc_now_iso()}
