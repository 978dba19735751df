"""Exceções utilitárias compartilhadas."""

from .exceptions import (
    InstanceCreationFailedError,
    InstanceNotFoundError,
    MissingSessionIdError,
    NoConnectedInstanceError,
    ProviderError,
    QRCodeTimeoutError,
    StatusPollTimeoutError,
    WhatsAppConnectionError,
)

__all__ = [
    "InstanceCreationFailedError",
    "InstanceNotFoundError",
    "MissingSessionIdError",
    "NoConnectedInstanceError",
    "ProviderError",
    "QRCodeTimeoutError",
    "StatusPollTimeoutError",
    "WhatsAppConnectionError",
]
