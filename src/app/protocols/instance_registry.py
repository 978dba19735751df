"""Contrato do registro sessionId → instância."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.domain.connection import Session


class InstanceRegistryProtocol(ABC):
    """Armazenamento das sessões de pareamento ativas.

    Chaveado por session_id; atualizações de status chegam por
    instance_name porque o provedor só conhece nomes de instância.
    """

    @abstractmethod
    def put(self, session_id: str, instance_name: str, status: str) -> Session: ...

    @abstractmethod
    def get(self, session_id: str) -> Session | None: ...

    @abstractmethod
    def find_instance_name(self, session_id: str) -> str | None: ...

    @abstractmethod
    def find_session_id(self, instance_name: str) -> str | None: ...

    @abstractmethod
    def update_status(self, instance_name: str, status: str) -> bool: ...

    @abstractmethod
    def remove(self, session_id: str) -> bool: ...

    @abstractmethod
    def list_sessions(self) -> list[Session]: ...
