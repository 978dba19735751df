"""Stores em memória do ciclo de conexão.

O registro vive no processo: sessões de pareamento não sobrevivem a
reinícios, assim como as instâncias de polling e streams associadas.
Mutado apenas a partir do event loop; sem locks.
"""

from __future__ import annotations

import logging

from app.domain.connection import Session
from app.protocols.instance_registry import InstanceRegistryProtocol

logger = logging.getLogger(__name__)


class MemoryInstanceRegistry(InstanceRegistryProtocol):
    """Registro sessionId → Session em memória."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def put(self, session_id: str, instance_name: str, status: str) -> Session:
        """Insere ou sobrescreve a sessão (nunca duplica)."""
        previous = self._sessions.get(session_id)
        session = Session(
            session_id=session_id,
            instance_name=instance_name,
            status=str(status),
        )
        self._sessions[session_id] = session
        if previous is not None and previous.instance_name != instance_name:
            logger.info(
                "registry_session_replaced",
                extra={
                    "session_id": session_id,
                    "instance_name": instance_name,
                    "previous_instance_name": previous.instance_name,
                },
            )
        return session

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def find_instance_name(self, session_id: str) -> str | None:
        session = self._sessions.get(session_id)
        return session.instance_name if session is not None else None

    def find_session_id(self, instance_name: str) -> str | None:
        for session in self._sessions.values():
            if session.instance_name == instance_name:
                return session.session_id
        return None

    def update_status(self, instance_name: str, status: str) -> bool:
        """Atualiza o status da sessão dona da instância.

        Returns:
            True se alguma sessão foi atualizada.
        """
        for session in self._sessions.values():
            if session.instance_name == instance_name:
                session.status = str(status)
                return True
        return False

    def remove(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def list_sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def __len__(self) -> int:
        return len(self._sessions)
