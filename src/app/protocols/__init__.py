"""Protocolos e contratos do core da aplicação."""

from .connection_gateway import ConnectionGatewayProtocol
from .event_sink import EventSinkProtocol, SinkClosedError
from .instance_registry import InstanceRegistryProtocol

__all__ = [
    "ConnectionGatewayProtocol",
    "EventSinkProtocol",
    "InstanceRegistryProtocol",
    "SinkClosedError",
]
