"""Factories de componentes: criação das implementações concretas.

Centraliza o wiring do ciclo de conexão WhatsApp a partir das
settings de ambiente. Todos os componentes aceitam colaboradores
injetados para testes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from api.connectors.evolution import create_evolution_gateway
from app.coordinators.whatsapp.connection import (
    ConnectionOrchestrator,
    EventBroadcaster,
    StatusPoller,
    TaskTracker,
)
from app.infra.stores import MemoryInstanceRegistry

if TYPE_CHECKING:
    from app.protocols.connection_gateway import ConnectionGatewayProtocol
    from app.protocols.instance_registry import InstanceRegistryProtocol
    from config.settings import EvolutionSettings

logger = logging.getLogger(__name__)


def create_instance_registry() -> InstanceRegistryProtocol:
    """Cria registro de sessões em memória (estado do processo)."""
    return MemoryInstanceRegistry()


def create_status_poller(
    gateway: ConnectionGatewayProtocol,
    settings: EvolutionSettings,
) -> StatusPoller:
    """Cria poller com intervalo e prazo configurados."""
    return StatusPoller(
        gateway,
        interval_seconds=settings.check_interval_seconds,
        timeout_seconds=settings.status_timeout_seconds,
    )


def create_connection_orchestrator(
    settings: EvolutionSettings | None = None,
    gateway: ConnectionGatewayProtocol | None = None,
    registry: InstanceRegistryProtocol | None = None,
) -> ConnectionOrchestrator:
    """Monta o orquestrador com gateway, registro, broadcaster e poller.

    Args:
        settings: EvolutionSettings opcional. Se None, carrega do ambiente.
        gateway: Gateway opcional. Se None, usa a Evolution API.
        registry: Registro opcional. Se None, usa memória.
    """
    if settings is None:
        from config.settings import get_evolution_settings

        settings = get_evolution_settings()

    gateway = gateway or create_evolution_gateway(settings)
    orchestrator = ConnectionOrchestrator(
        gateway=gateway,
        registry=registry or create_instance_registry(),
        broadcaster=EventBroadcaster(),
        poller=create_status_poller(gateway, settings),
        tasks=TaskTracker(),
        qr_max_attempts=settings.qr_max_attempts,
        qr_interval_seconds=settings.qr_interval_seconds,
        close_grace_seconds=settings.close_grace_seconds,
    )
    logger.info(
        "connection_orchestrator_created",
        extra={
            "gateway": type(gateway).__name__,
            "check_interval_seconds": settings.check_interval_seconds,
            "status_timeout_seconds": settings.status_timeout_seconds,
        },
    )
    return orchestrator
