"""
Módulo FSM: estados do ciclo de conexão WhatsApp.

Estrutura:
    - states/: status da sessão (SessionStatus) e do poller (PollerState)

O ciclo é dirigido pelo provedor: o StatusPoller observa o estado remoto
e o ConnectionOrchestrator decide o encerramento a partir dos status
terminais definidos aqui.
"""

from fsm.states import (
    DEFAULT_INITIAL_STATUS,
    FAILURE_STATUSES,
    TERMINAL_STATUSES,
    PollerState,
    SessionStatus,
    is_failure_status,
    is_terminal_status,
    normalize_provider_state,
)

__all__ = [
    "DEFAULT_INITIAL_STATUS",
    "FAILURE_STATUSES",
    "TERMINAL_STATUSES",
    "PollerState",
    "SessionStatus",
    "is_failure_status",
    "is_terminal_status",
    "normalize_provider_state",
]
