"""StatusPoller: verificação periódica do status de instâncias.

Máquina de estados por instance_name:

    idle ──start()──▶ polling ──(conectado | erro | prazo | stop())──▶ terminal

Cada instância em polling possui duas tasks: o loop de verificação
(primeira checagem imediata, depois a cada `interval_seconds`) e o
prazo (`timeout_seconds`). O callback só é chamado quando o status
muda. Após o encerramento nenhum callback é disparado, mesmo que uma
checagem já estivesse em voo.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.domain.connection import ConnectionStatus
from config.logging import log_duration
from fsm.states import DEFAULT_INITIAL_STATUS, PollerState
from utils.errors import StatusPollTimeoutError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from app.protocols.connection_gateway import ConnectionGatewayProtocol

    StatusChangeCallback = Callable[[ConnectionStatus], Awaitable[None] | None]
    SleepFunc = Callable[[float], Awaitable[Any]]

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 30.0
DEFAULT_TIMEOUT_SECONDS = 300.0


@dataclass(slots=True)
class PollHandle:
    """Estado de uma verificação ativa (dono: StatusPoller)."""

    instance_name: str
    session_id: str
    on_change: StatusChangeCallback
    last_status: str
    started_at: float
    started_at_utc: datetime = field(default_factory=lambda: datetime.now(UTC))
    state: PollerState = PollerState.POLLING
    check_count: int = 0
    check_task: asyncio.Task[None] | None = None
    deadline_task: asyncio.Task[None] | None = None

    @property
    def active(self) -> bool:
        return self.state == PollerState.POLLING

    def info(self) -> dict[str, Any]:
        """Dados públicos da verificação (sem handles de task)."""
        return {
            "instanceName": self.instance_name,
            "sessionId": self.session_id,
            "lastStatus": self.last_status,
            "startedAt": self.started_at_utc.isoformat(),
            "checks": self.check_count,
        }


class StatusPoller:
    """Dono exclusivo das verificações periódicas, por instance_name."""

    def __init__(
        self,
        gateway: ConnectionGatewayProtocol,
        *,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        sleep: SleepFunc = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._gateway = gateway
        self._interval = interval_seconds
        self._timeout = timeout_seconds
        self._sleep = sleep
        self._clock = clock
        self._handles: dict[str, PollHandle] = {}

    def start(
        self,
        instance_name: str,
        session_id: str,
        on_change: StatusChangeCallback,
        *,
        initial_status: str = DEFAULT_INITIAL_STATUS,
    ) -> bool:
        """Inicia a verificação periódica da instância.

        Args:
            instance_name: Instância a verificar
            session_id: Sessão associada (para logs/diagnóstico)
            on_change: Callback chamado a cada mudança de status
            initial_status: Último status conhecido; a primeira checagem
                só notifica se divergir dele

        Returns:
            False (no-op) se já existe verificação ativa para a instância.
        """
        if instance_name in self._handles:
            logger.warning(
                "status_poll_already_active",
                extra={"instance_name": instance_name, "session_id": session_id},
            )
            return False

        handle = PollHandle(
            instance_name=instance_name,
            session_id=session_id,
            on_change=on_change,
            last_status=str(initial_status),
            started_at=self._clock(),
        )
        self._handles[instance_name] = handle
        handle.check_task = asyncio.create_task(
            self._run_checks(handle),
            name=f"status-poll:{instance_name}",
        )
        handle.deadline_task = asyncio.create_task(
            self._run_deadline(handle),
            name=f"status-deadline:{instance_name}",
        )
        logger.info(
            "status_poll_started",
            extra={
                "instance_name": instance_name,
                "session_id": session_id,
                "interval_seconds": self._interval,
                "timeout_seconds": self._timeout,
                "active_polls": len(self._handles),
            },
        )
        return True

    def stop(self, instance_name: str) -> bool:
        """Cancela as tasks e remove a verificação; idempotente.

        Returns:
            False se não havia verificação ativa para a instância.
        """
        handle = self._handles.pop(instance_name, None)
        if handle is None:
            logger.warning("status_poll_not_found", extra={"instance_name": instance_name})
            return False

        handle.state = PollerState.TERMINAL
        current = _current_task()
        for task in (handle.check_task, handle.deadline_task):
            # A task corrente termina sozinha ao ver o estado terminal
            if task is not None and task is not current and not task.done():
                task.cancel()

        log_duration(
            logger,
            "status_poll_stopped",
            handle.started_at,
            clock=self._clock,
            instance_name=instance_name,
            session_id=handle.session_id,
            checks=handle.check_count,
            last_status=handle.last_status,
            active_polls=len(self._handles),
        )
        return True

    def stop_all(self) -> int:
        """Encerra todas as verificações (shutdown gracioso)."""
        names = list(self._handles)
        for name in names:
            self.stop(name)
        return len(names)

    def is_polling(self, instance_name: str) -> bool:
        return instance_name in self._handles

    def get_state(self, instance_name: str) -> PollerState:
        handle = self._handles.get(instance_name)
        return handle.state if handle is not None else PollerState.IDLE

    def get_info(self, instance_name: str) -> dict[str, Any] | None:
        handle = self._handles.get(instance_name)
        return handle.info() if handle is not None else None

    def active_instances(self) -> list[str]:
        return list(self._handles)

    @property
    def count(self) -> int:
        return len(self._handles)

    async def _run_checks(self, handle: PollHandle) -> None:
        while handle.active:
            await self._check(handle)
            if not handle.active:
                return
            await self._sleep(self._interval)

    async def _run_deadline(self, handle: PollHandle) -> None:
        await self._sleep(self._timeout)
        if not handle.active:
            return
        logger.warning(
            "status_poll_timeout",
            extra={
                "instance_name": handle.instance_name,
                "session_id": handle.session_id,
                "error_code": StatusPollTimeoutError.code,
                "timeout_seconds": self._timeout,
            },
        )
        self._finish(handle)
        await self._notify(handle, ConnectionStatus.timeout(handle.instance_name))

    async def _check(self, handle: PollHandle) -> None:
        handle.check_count += 1
        try:
            status = await self._gateway.check_status(handle.instance_name)
        except Exception as exc:
            if not handle.active:
                return
            logger.error(
                "status_check_failed",
                extra={
                    "instance_name": handle.instance_name,
                    "session_id": handle.session_id,
                    "error_type": type(exc).__name__,
                },
            )
            self._finish(handle)
            await self._notify(handle, ConnectionStatus.error(handle.instance_name))
            return

        # Encerrado enquanto a consulta estava em voo
        if not handle.active:
            return

        if status.status == handle.last_status:
            logger.debug(
                "status_unchanged",
                extra={"instance_name": handle.instance_name, "status": status.status},
            )
            return

        logger.info(
            "status_changed",
            extra={
                "instance_name": handle.instance_name,
                "session_id": handle.session_id,
                "previous_status": handle.last_status,
                "status": status.status,
                "connected": status.connected,
            },
        )
        handle.last_status = status.status

        if status.is_terminal:
            self._finish(handle)
        await self._notify(handle, status)

    def _finish(self, handle: PollHandle) -> None:
        """Transição para terminal antes do callback (sem checagens extras)."""
        if self._handles.get(handle.instance_name) is handle:
            self.stop(handle.instance_name)
        handle.state = PollerState.TERMINAL

    async def _notify(self, handle: PollHandle, status: ConnectionStatus) -> None:
        try:
            result = handle.on_change(status)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(
                "status_callback_failed",
                extra={"instance_name": handle.instance_name, "session_id": handle.session_id},
            )


def _current_task() -> asyncio.Task[Any] | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None
