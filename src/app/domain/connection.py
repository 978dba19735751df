"""Modelos de domínio do ciclo de conexão WhatsApp.

- Session: tentativa de pareamento (sessionId → instanceName)
- ConnectionStatus: status reportado pelo provedor para uma instância
- StreamEvent: evento tipado entregue ao cliente via SSE
- ConnectResult: resposta síncrona de um pedido de conexão
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from fsm.states import SessionStatus, is_failure_status, is_terminal_status


def utc_now_iso() -> str:
    """Timestamp ISO-8601 em UTC usado em eventos e respostas."""
    return datetime.now(UTC).isoformat()


@dataclass(slots=True)
class Session:
    """Registro de uma sessão de pareamento.

    Atributos:
        session_id: ID opaco da sessão (fornecido pelo cliente ou gerado)
        instance_name: Nome da instância criada no provedor
        status: Último status conhecido (SessionStatus ou estado cru)
        created_at: Momento da criação
    """

    session_id: str
    instance_name: str
    status: str = SessionStatus.CREATED.value
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Serializa para respostas de diagnóstico."""
        return {
            "sessionId": self.session_id,
            "instanceName": self.instance_name,
            "status": str(self.status),
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class ConnectionStatus:
    """Status de conexão de uma instância no provedor."""

    connected: bool
    status: str
    instance_name: str = ""

    @property
    def is_terminal(self) -> bool:
        """Conectado ou status terminal (timeout/erro)."""
        return self.connected or is_terminal_status(self.status)

    @property
    def is_failure(self) -> bool:
        return is_failure_status(self.status)

    @classmethod
    def error(cls, instance_name: str = "") -> ConnectionStatus:
        """Status degradado usado quando a consulta ao provedor falha."""
        return cls(connected=False, status=SessionStatus.ERROR.value, instance_name=instance_name)

    @classmethod
    def timeout(cls, instance_name: str = "") -> ConnectionStatus:
        return cls(connected=False, status=SessionStatus.TIMEOUT.value, instance_name=instance_name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "connected": self.connected,
            "status": str(self.status),
            "instanceName": self.instance_name,
            "timestamp": utc_now_iso(),
        }


class EventType(StrEnum):
    """Tipos de evento enviados pelo stream de conexão."""

    QRCODE = "qrcode"
    STATUS = "status"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class StreamEvent:
    """Evento tipado do stream SSE (`event: <type>` + `data: <json>`)."""

    type: EventType
    data: dict[str, Any]

    @classmethod
    def qrcode(cls, qrcode: str) -> StreamEvent:
        return cls(EventType.QRCODE, {"qrcode": qrcode, "timestamp": utc_now_iso()})

    @classmethod
    def status(cls, status: ConnectionStatus) -> StreamEvent:
        return cls(EventType.STATUS, status.to_dict())

    @classmethod
    def error(cls, code: str, message: str) -> StreamEvent:
        return cls(
            EventType.ERROR,
            {"code": code, "message": message, "timestamp": utc_now_iso()},
        )

    @property
    def is_terminal(self) -> bool:
        """Erro sempre encerra; status encerra quando terminal."""
        if self.type == EventType.ERROR:
            return True
        if self.type == EventType.STATUS:
            return bool(self.data.get("connected")) or is_terminal_status(
                str(self.data.get("status", ""))
            )
        return False


@dataclass(frozen=True, slots=True)
class ConnectResult:
    """Resultado de um pedido de conexão."""

    session_id: str
    instance_name: str
    replaced_instance: str | None = None
