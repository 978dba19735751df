"""Fake in-memory do gateway de conexão para testes deterministas."""

from __future__ import annotations

import asyncio
from typing import Any

from app.domain.connection import ConnectionStatus
from fsm.states import SessionStatus
from utils.errors import NoConnectedInstanceError

DEFAULT_QR = "data:image/png;base64,iVBORw0KGgo="


def _pick(sequence: list[Any], call_number: int) -> Any:
    # Último item se repete depois que a sequência acaba
    return sequence[min(call_number, len(sequence)) - 1]


class FakeGateway:
    """Implementa ConnectionGatewayProtocol sem IO.

    `qr_codes` e `statuses` são roteiros consumidos a cada chamada; itens
    que são exceções são levantados.
    """

    def __init__(
        self,
        *,
        qr_codes: list[Any] | None = None,
        statuses: list[Any] | None = None,
    ) -> None:
        self.qr_codes = qr_codes or [DEFAULT_QR]
        self.statuses = statuses or [SessionStatus.CREATED.value]
        self.created: list[str] = []
        self.deleted: list[str] = []
        self.sent: list[tuple[str, str]] = []
        self.qr_calls = 0
        self.status_calls = 0
        self.create_error: Exception | None = None
        self.delete_error: Exception | None = None
        self.connected_instance: str | None = None
        self.status_gate: asyncio.Event | None = None

    async def create_instance(self, session_id: str) -> str:
        if self.create_error is not None:
            raise self.create_error
        instance_name = f"wa_{len(self.created) + 1}"
        self.created.append(instance_name)
        return instance_name

    async def get_qr_code(self, instance_name: str) -> str | None:
        self.qr_calls += 1
        item = _pick(self.qr_codes, self.qr_calls)
        if isinstance(item, Exception):
            raise item
        return item

    async def check_status(self, instance_name: str) -> ConnectionStatus:
        self.status_calls += 1
        if self.status_gate is not None:
            await self.status_gate.wait()
        item = _pick(self.statuses, self.status_calls)
        if isinstance(item, Exception):
            raise item
        return ConnectionStatus(
            connected=item == SessionStatus.OPEN,
            status=item,
            instance_name=instance_name,
        )

    async def delete_instance(self, instance_name: str) -> None:
        self.deleted.append(instance_name)
        if self.delete_error is not None:
            raise self.delete_error

    async def send_message(self, phone_number: str, text: str) -> bool:
        if self.connected_instance is None:
            raise NoConnectedInstanceError()
        self.sent.append((phone_number, text))
        return True
