"""Endpoint de liveness com contagem das conexões em andamento."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.bootstrap import get_connection_orchestrator
from app.coordinators.whatsapp.connection import ConnectionOrchestrator
from config.settings import get_base_settings

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    service: str
    environment: str
    timestamp: str
    sessions: int
    streams: int
    pollers: int
    version: str = "1.0.0"


@router.get("/health", response_model=HealthResponse)
async def health_check(
    orchestrator: Annotated[ConnectionOrchestrator, Depends(get_connection_orchestrator)],
) -> HealthResponse:
    """Responde enquanto o processo estiver de pé; não consulta a Evolution API."""
    settings = get_base_settings()
    snapshot = orchestrator.snapshot()
    return HealthResponse(
        status="healthy",
        service=settings.service_name,
        environment=settings.environment,
        timestamp=datetime.now(UTC).isoformat(),
        sessions=len(snapshot["sessions"]),
        streams=len(snapshot["streams"]),
        pollers=len(snapshot["pollers"]),
    )
