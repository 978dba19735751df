"""
Exports públicos do módulo fsm/states.

Status canônicos do ciclo de conexão WhatsApp.
"""

from fsm.states.connection import (
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
