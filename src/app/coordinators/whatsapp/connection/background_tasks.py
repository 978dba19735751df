"""Controle de tasks em background do ciclo de conexão.

Aquisição de QR code e encerramentos com atraso rodam como tasks
soltas; o tracker mantém referência forte, loga falhas e permite
drenar tudo no shutdown.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Coroutine

logger = logging.getLogger(__name__)


class TaskTracker:
    """Conjunto de tasks ativas com limpeza automática."""

    def __init__(self) -> None:
        self._active: set[asyncio.Task[Any]] = set()

    @property
    def active_count(self) -> int:
        return len(self._active)

    def schedule(
        self,
        coroutine: Coroutine[Any, Any, None],
        *,
        name: str,
        session_id: str = "",
    ) -> asyncio.Task[None]:
        """Agenda a coroutine e acompanha até terminar."""
        task = asyncio.create_task(coroutine, name=name)
        self._active.add(task)
        task.add_done_callback(self._on_done)
        logger.debug(
            "background_task_scheduled",
            extra={
                "task_name": name,
                "session_id": session_id,
                "active_tasks": len(self._active),
            },
        )
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._active.discard(task)
        with contextlib.suppress(asyncio.CancelledError):
            exc = task.exception()
            if exc is not None:
                logger.error(
                    "background_task_failed",
                    extra={
                        "task_name": task.get_name(),
                        "error_type": type(exc).__name__,
                        "active_tasks": len(self._active),
                    },
                )

    async def drain(self, timeout_seconds: float = 5.0) -> None:
        """Aguarda tasks pendentes; cancela o que passar do prazo."""
        if not self._active:
            return

        pending_now = list(self._active)
        logger.info(
            "background_tasks_shutdown_wait",
            extra={"pending_tasks": len(pending_now), "timeout_seconds": timeout_seconds},
        )
        _, pending = await asyncio.wait(pending_now, timeout=timeout_seconds)
        if not pending:
            return

        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        logger.warning(
            "background_tasks_shutdown_cancelled",
            extra={"cancelled_tasks": len(pending)},
        )
