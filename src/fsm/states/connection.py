"""
Estados canônicos de uma conexão WhatsApp (sessão de pareamento).

Status da sessão seguem o ciclo:
    created → qr_issued → open | closed | timeout | error

O provedor (Evolution API) reporta seus próprios estados
("open", "close", "connecting"); o gateway normaliza "close" para
"closed" antes de chegar aqui. Status desconhecidos são preservados
como string crua, mas nunca são terminais.
"""

from enum import StrEnum


class SessionStatus(StrEnum):
    """
    Status de uma sessão de pareamento WhatsApp.

    Estados não-terminais:
        - CREATED: Instância criada no provedor, aguardando QR code
        - QR_ISSUED: QR code entregue ao cliente, aguardando leitura
        - CONNECTING: Provedor reporta pareamento em andamento
        - CLOSED: Provedor reporta instância desconectada (ainda sem leitura)

    Estados terminais:
        - OPEN: Instância conectada ao WhatsApp
        - TIMEOUT: Prazo máximo de verificação expirou
        - ERROR: Falha ao consultar o provedor

    Estado final de desconexão explícita:
        - DISCONNECTED: Cliente solicitou desconexão
    """

    CREATED = "created"
    QR_ISSUED = "qr_issued"
    CONNECTING = "connecting"
    CLOSED = "closed"

    OPEN = "open"
    TIMEOUT = "timeout"
    ERROR = "error"

    DISCONNECTED = "disconnected"

    def __str__(self) -> str:
        return self.value


class PollerState(StrEnum):
    """Estado da verificação periódica de uma instância."""

    IDLE = "idle"
    POLLING = "polling"
    TERMINAL = "terminal"

    def __str__(self) -> str:
        return self.value


# Status após os quais polling e stream da sessão são encerrados
TERMINAL_STATUSES: frozenset[SessionStatus] = frozenset({
    SessionStatus.OPEN,
    SessionStatus.TIMEOUT,
    SessionStatus.ERROR,
})

# Status terminais que representam falha (sessão descartada)
FAILURE_STATUSES: frozenset[SessionStatus] = frozenset({
    SessionStatus.TIMEOUT,
    SessionStatus.ERROR,
})

DEFAULT_INITIAL_STATUS: SessionStatus = SessionStatus.CREATED


def is_terminal_status(status: str) -> bool:
    """
    Verifica se o status encerra o ciclo de conexão.

    Args:
        status: Status reportado (enum ou string crua do provedor)

    Returns:
        True se o status é terminal
    """
    return status in TERMINAL_STATUSES


def is_failure_status(status: str) -> bool:
    """Verifica se o status é terminal por falha (timeout/erro)."""
    return status in FAILURE_STATUSES


def normalize_provider_state(state: str | None) -> str:
    """
    Converte o estado reportado pelo provedor para o vocabulário interno.

    Args:
        state: Estado cru (ex: "open", "close", "connecting") ou None

    Returns:
        Status normalizado; ausência vira "closed"
    """
    if not state:
        return SessionStatus.CLOSED.value
    lowered = state.strip().lower()
    if lowered == "close":
        return SessionStatus.CLOSED.value
    return lowered
