"""ConnectionOrchestrator: fluxo de pareamento WhatsApp de ponta a ponta.

Fluxo:
1. connect(): cria instância no provedor e registra a sessão
2. open_stream(): assina o stream SSE da sessão e agenda a aquisição
   do QR code (tentativas limitadas)
3. QR obtido → evento `qrcode` → StatusPoller iniciado
4. Mudanças de status → evento `status`; status terminal encerra o
   stream após um pequeno atraso (flush do último evento)
5. disconnect(): para polling, fecha stream, remove a instância
   (best-effort) e o registro

O orquestrador não guarda estado próprio: registro, streams e polling
pertencem aos colaboradores injetados. Erros dos loops em background
viram eventos `error`/`status`; erros de connect/status/disconnect
propagam para a camada HTTP.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import TYPE_CHECKING, Any

from app.domain.connection import ConnectionStatus, ConnectResult, StreamEvent
from fsm.states import SessionStatus
from utils.errors import (
    InstanceNotFoundError,
    ProviderError,
    QRCodeTimeoutError,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from app.coordinators.whatsapp.connection.background_tasks import TaskTracker
    from app.coordinators.whatsapp.connection.event_broadcaster import EventBroadcaster
    from app.coordinators.whatsapp.connection.status_poller import StatusPoller
    from app.protocols.connection_gateway import ConnectionGatewayProtocol
    from app.protocols.event_sink import EventSinkProtocol
    from app.protocols.instance_registry import InstanceRegistryProtocol

logger = logging.getLogger(__name__)

DEFAULT_QR_MAX_ATTEMPTS = 20
DEFAULT_QR_INTERVAL_SECONDS = 1.0
DEFAULT_CLOSE_GRACE_SECONDS = 1.0

INSTANCE_NOT_FOUND_STREAM_MESSAGE = (
    "Instância não encontrada para este sessionId. Chame POST /connect primeiro."
)


class ConnectionOrchestrator:
    """Coordena gateway, registro, broadcaster e poller."""

    def __init__(
        self,
        *,
        gateway: ConnectionGatewayProtocol,
        registry: InstanceRegistryProtocol,
        broadcaster: EventBroadcaster,
        poller: StatusPoller,
        tasks: TaskTracker,
        qr_max_attempts: int = DEFAULT_QR_MAX_ATTEMPTS,
        qr_interval_seconds: float = DEFAULT_QR_INTERVAL_SECONDS,
        close_grace_seconds: float = DEFAULT_CLOSE_GRACE_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        session_id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._gateway = gateway
        self._registry = registry
        self._broadcaster = broadcaster
        self._poller = poller
        self._tasks = tasks
        self._qr_max_attempts = qr_max_attempts
        self._qr_interval = qr_interval_seconds
        self._close_grace = close_grace_seconds
        self._sleep = sleep
        self._new_session_id = session_id_factory or (lambda: str(uuid.uuid4()))

    @property
    def gateway(self) -> ConnectionGatewayProtocol:
        return self._gateway

    # ──────────────────────────────────────────────────────────────────
    # Connect
    # ──────────────────────────────────────────────────────────────────

    async def connect(self, session_id: str | None = None) -> ConnectResult:
        """Cria instância no provedor e registra a sessão.

        Uma sessão já registrada é substituída (a instância anterior é
        descartada só depois que a nova foi criada).

        Raises:
            ProviderError: Falha ao criar a instância (nada é registrado).
        """
        session_id = session_id or self._new_session_id()
        logger.info("connect_requested", extra={"session_id": session_id})

        try:
            instance_name = await self._gateway.create_instance(session_id)
        except ProviderError:
            logger.error("instance_creation_failed", extra={"session_id": session_id})
            raise
        except Exception as exc:
            logger.exception("instance_creation_failed", extra={"session_id": session_id})
            raise ProviderError(f"Falha ao criar instância: {exc}") from exc

        previous = self._registry.get(session_id)
        replaced: str | None = None
        if previous is not None and previous.instance_name != instance_name:
            replaced = previous.instance_name
            await self._teardown(session_id, previous.instance_name, delete_remote=True)

        self._registry.put(session_id, instance_name, SessionStatus.CREATED)
        logger.info(
            "instance_registered",
            extra={"session_id": session_id, "instance_name": instance_name},
        )
        return ConnectResult(
            session_id=session_id,
            instance_name=instance_name,
            replaced_instance=replaced,
        )

    # ──────────────────────────────────────────────────────────────────
    # Stream
    # ──────────────────────────────────────────────────────────────────

    def open_stream(self, session_id: str, sink: EventSinkProtocol) -> bool:
        """Assina o stream da sessão e agenda a aquisição do QR code.

        Returns:
            False se a sessão não existe (evento de erro enviado e stream
            encerrado); True se a aquisição foi agendada.
        """
        self._broadcaster.subscribe(session_id, sink)

        instance_name = self._registry.find_instance_name(session_id)
        if instance_name is None:
            logger.warning("stream_instance_not_found", extra={"session_id": session_id})
            self._broadcaster.close(
                session_id,
                StreamEvent.error(
                    InstanceNotFoundError.code,
                    INSTANCE_NOT_FOUND_STREAM_MESSAGE,
                ),
            )
            return False

        task = self._tasks.schedule(
            self._acquire_qr_code(session_id, instance_name),
            name=f"qr-acquire:{instance_name}",
            session_id=session_id,
        )

        def _on_client_gone() -> None:
            # Cliente saiu: nada de QR nem polling sem assinante.
            # A própria task de QR encerra o stream no timeout.
            if not task.done() and task is not asyncio.current_task():
                task.cancel()
            if self._poller.is_polling(instance_name):
                self._poller.stop(instance_name)
            logger.info(
                "stream_resources_released",
                extra={"session_id": session_id, "instance_name": instance_name},
            )

        sink.on_close(_on_client_gone)
        return True

    async def _acquire_qr_code(self, session_id: str, instance_name: str) -> None:
        try:
            qrcode = await self._fetch_qr_code(session_id, instance_name)
        except QRCodeTimeoutError as exc:
            logger.warning(
                "qr_code_timeout",
                extra={
                    "session_id": session_id,
                    "instance_name": instance_name,
                    "attempts": self._qr_max_attempts,
                },
            )
            self._broadcaster.close(session_id, StreamEvent.error(exc.code, exc.message))
            await self._discard_failed_session(session_id, instance_name)
            return

        if not self._broadcaster.publish(session_id, StreamEvent.qrcode(qrcode)):
            logger.info(
                "qr_code_undelivered",
                extra={"session_id": session_id, "instance_name": instance_name},
            )
            return

        self._registry.update_status(instance_name, SessionStatus.QR_ISSUED)
        self._poller.start(
            instance_name,
            session_id,
            self._status_callback(session_id, instance_name),
        )

    async def _fetch_qr_code(self, session_id: str, instance_name: str) -> str:
        """Tenta obter o QR code até `qr_max_attempts` vezes.

        Raises:
            QRCodeTimeoutError: Tentativas esgotadas sem QR code.
        """
        for attempt in range(1, self._qr_max_attempts + 1):
            try:
                qrcode = await self._gateway.get_qr_code(instance_name)
            except Exception as exc:
                logger.info(
                    "qr_code_fetch_failed",
                    extra={
                        "session_id": session_id,
                        "instance_name": instance_name,
                        "attempt": attempt,
                        "error_type": type(exc).__name__,
                    },
                )
                qrcode = None

            if qrcode:
                logger.info(
                    "qr_code_obtained",
                    extra={
                        "session_id": session_id,
                        "instance_name": instance_name,
                        "attempt": attempt,
                        "qrcode_length": len(qrcode),
                    },
                )
                return qrcode

            logger.debug(
                "qr_code_not_ready",
                extra={"instance_name": instance_name, "attempt": attempt},
            )
            if attempt < self._qr_max_attempts:
                await self._sleep(self._qr_interval)

        raise QRCodeTimeoutError()

    def _status_callback(
        self,
        session_id: str,
        instance_name: str,
    ) -> Callable[[ConnectionStatus], None]:
        def _on_status_change(status: ConnectionStatus) -> None:
            self._registry.update_status(instance_name, status.status)
            self._broadcaster.publish(session_id, StreamEvent.status(status))

            if not status.is_terminal:
                return

            logger.info(
                "connection_terminal_status",
                extra={
                    "session_id": session_id,
                    "instance_name": instance_name,
                    "status": status.status,
                    "connected": status.connected,
                },
            )
            self._tasks.schedule(
                self._close_after_grace(session_id, instance_name, status),
                name=f"stream-close:{session_id}",
                session_id=session_id,
            )

        return _on_status_change

    async def _close_after_grace(
        self,
        session_id: str,
        instance_name: str,
        status: ConnectionStatus,
    ) -> None:
        await self._sleep(self._close_grace)
        # Reconexão durante a espera: o stream atual pertence a outra instância
        if self._registry.find_session_id(instance_name) != session_id:
            logger.info(
                "stream_close_skipped",
                extra={"session_id": session_id, "instance_name": instance_name},
            )
            return
        if self._broadcaster.has_stream(session_id):
            self._broadcaster.close(session_id)
        if status.is_failure:
            await self._discard_failed_session(session_id, instance_name)

    async def _discard_failed_session(self, session_id: str, instance_name: str) -> None:
        """Timeout/erro: instância não será usada; libera provedor e registro."""
        # Sessão pode ter sido reconectada com outra instância nesse meio tempo
        if self._registry.find_instance_name(session_id) != instance_name:
            return
        await self._safe_delete(instance_name)
        self._registry.remove(session_id)
        logger.info(
            "failed_session_discarded",
            extra={"session_id": session_id, "instance_name": instance_name},
        )

    # ──────────────────────────────────────────────────────────────────
    # Status / Disconnect
    # ──────────────────────────────────────────────────────────────────

    async def get_status(self, session_id: str) -> ConnectionStatus:
        """Consulta pontual do status da sessão.

        Raises:
            InstanceNotFoundError: Sessão sem registro.
        """
        instance_name = self._registry.find_instance_name(session_id)
        if instance_name is None:
            raise InstanceNotFoundError(session_id)

        status = await self._gateway.check_status(instance_name)
        self._registry.update_status(instance_name, status.status)
        return status

    async def disconnect(self, session_id: str) -> str:
        """Desconecta a sessão; sempre conclui mesmo se o provedor falhar.

        Returns:
            Nome da instância removida.

        Raises:
            InstanceNotFoundError: Sessão sem registro.
        """
        instance_name = self._registry.find_instance_name(session_id)
        if instance_name is None:
            raise InstanceNotFoundError(session_id)

        logger.info(
            "disconnect_requested",
            extra={"session_id": session_id, "instance_name": instance_name},
        )
        await self._teardown(session_id, instance_name, delete_remote=True)
        self._registry.remove(session_id)
        return instance_name

    async def send_message(self, phone_number: str, text: str) -> bool:
        """Envia texto pela instância conectada.

        Raises:
            NoConnectedInstanceError: Nenhuma instância conectada.
        """
        return await self._gateway.send_message(phone_number, text)

    async def _teardown(
        self,
        session_id: str,
        instance_name: str,
        *,
        delete_remote: bool,
    ) -> None:
        if self._poller.is_polling(instance_name):
            self._poller.stop(instance_name)

        if self._broadcaster.has_stream(session_id):
            self._broadcaster.close(
                session_id,
                StreamEvent.status(
                    ConnectionStatus(
                        connected=False,
                        status=SessionStatus.DISCONNECTED.value,
                        instance_name=instance_name,
                    )
                ),
            )

        if delete_remote:
            await self._safe_delete(instance_name)

    async def _safe_delete(self, instance_name: str) -> None:
        try:
            await self._gateway.delete_instance(instance_name)
        except Exception as exc:
            logger.warning(
                "instance_delete_failed",
                extra={"instance_name": instance_name, "error_type": type(exc).__name__},
            )

    # ──────────────────────────────────────────────────────────────────
    # Diagnóstico / Shutdown
    # ──────────────────────────────────────────────────────────────────

    def snapshot(self) -> dict[str, Any]:
        """Estado atual de sessões, streams e verificações."""
        return {
            "sessions": [session.to_dict() for session in self._registry.list_sessions()],
            "streams": self._broadcaster.active_sessions(),
            "pollers": [
                info
                for name in self._poller.active_instances()
                if (info := self._poller.get_info(name)) is not None
            ],
            "backgroundTasks": self._tasks.active_count,
        }

    async def shutdown(self, timeout_seconds: float = 5.0) -> None:
        """Para polling, encerra streams e drena tasks em background."""
        stopped = self._poller.stop_all()
        closed = self._broadcaster.close_all(
            StreamEvent.error("SERVER_SHUTDOWN", "Servidor encerrando")
        )
        await self._tasks.drain(timeout_seconds=timeout_seconds)
        logger.info(
            "connection_orchestrator_shutdown",
            extra={"stopped_polls": stopped, "closed_streams": closed},
        )
