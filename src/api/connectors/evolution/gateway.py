"""Gateway da Evolution API: implementação de ConnectionGatewayProtocol.

Único ponto de IO com o provedor WhatsApp. Normaliza os modos de falha
na borda:

- create_instance: erro → ProviderError
- get_qr_code: resposta sem `base64` → None (ainda não pronto)
- check_status: qualquer falha → ConnectionStatus.error()
- delete_instance: falha só é logada
- send_message: sem instância `open` → NoConnectedInstanceError
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from typing import TYPE_CHECKING, Any

from api.connectors.evolution.http_client import (
    EvolutionHttpClient,
    HttpClientConfig,
    HttpError,
)
from app.domain.connection import ConnectionStatus
from fsm.states import SessionStatus, normalize_provider_state
from utils.errors import NoConnectedInstanceError, ProviderError

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

    from config.settings import EvolutionSettings

logger = logging.getLogger(__name__)


def build_instance_name(
    prefix: str,
    *,
    clock_ms: Callable[[], int] | None = None,
    suffix_factory: Callable[[], str] | None = None,
) -> str:
    """Gera nome único `prefix_timestampMs_sufixo`."""
    timestamp = clock_ms() if clock_ms else int(time.time() * 1000)
    suffix = suffix_factory() if suffix_factory else uuid.uuid4().hex[:8]
    return f"{prefix}_{timestamp}_{suffix}"


def normalize_phone_number(phone_number: str) -> str:
    """Remove tudo que não for dígito (formato aceito pela Evolution)."""
    return re.sub(r"\D", "", phone_number or "")


class EvolutionGateway:
    """Adapter da Evolution API v2 para o ciclo de conexão."""

    def __init__(
        self,
        client: EvolutionHttpClient,
        *,
        instance_prefix: str = "neuropgrag",
        integration: str = "WHATSAPP-BAILEYS",
        name_factory: Callable[[str], str] = build_instance_name,
    ) -> None:
        self._client = client
        self._prefix = instance_prefix
        self._integration = integration
        self._name_factory = name_factory

    async def aclose(self) -> None:
        await self._client.aclose()

    async def create_instance(self, session_id: str) -> str:
        instance_name = self._name_factory(self._prefix)
        payload = {
            "instanceName": instance_name,
            "qrcode": True,
            "integration": self._integration,
        }
        try:
            response = await self._client.post("/instance/create", json=payload)
        except HttpError as exc:
            raise ProviderError(
                f"Falha ao criar instância: {exc}",
                status_code=exc.status_code,
            ) from exc
        _raise_for_status(response, "create_instance")

        logger.info(
            "evolution_instance_created",
            extra={"session_id": session_id, "instance_name": instance_name},
        )
        return instance_name

    async def get_qr_code(self, instance_name: str) -> str | None:
        try:
            response = await self._client.get(f"/instance/connect/{instance_name}")
        except HttpError as exc:
            raise ProviderError(
                f"Falha ao obter QR code: {exc}",
                status_code=exc.status_code,
            ) from exc
        _raise_for_status(response, "get_qr_code")

        body = _json_or_empty(response)
        qrcode = body.get("base64") or (body.get("qrcode") or {}).get("base64")
        return qrcode or None

    async def check_status(self, instance_name: str) -> ConnectionStatus:
        try:
            response = await self._client.get(f"/instance/connectionState/{instance_name}")
            _raise_for_status(response, "check_status")
        except (HttpError, ProviderError) as exc:
            logger.warning(
                "evolution_status_check_degraded",
                extra={"instance_name": instance_name, "error_type": type(exc).__name__},
            )
            return ConnectionStatus.error(instance_name)

        body = _json_or_empty(response)
        instance = body.get("instance") or {}
        status = normalize_provider_state(instance.get("state") or body.get("state"))
        return ConnectionStatus(
            connected=status == SessionStatus.OPEN,
            status=status,
            instance_name=instance_name,
        )

    async def delete_instance(self, instance_name: str) -> None:
        try:
            response = await self._client.delete(f"/instance/delete/{instance_name}")
            _raise_for_status(response, "delete_instance")
        except (HttpError, ProviderError) as exc:
            # Instância pode já ter sido removida no provedor
            logger.warning(
                "evolution_instance_delete_failed",
                extra={"instance_name": instance_name, "error_type": type(exc).__name__},
            )
            return
        logger.info("evolution_instance_deleted", extra={"instance_name": instance_name})

    async def list_instances(self) -> list[dict[str, str]]:
        """Lista instâncias do provedor como `{instanceName, status}`.

        Raises:
            ProviderError: Falha na chamada.
        """
        try:
            response = await self._client.get("/instance/fetchInstances")
        except HttpError as exc:
            raise ProviderError(
                f"Falha ao listar instâncias: {exc}",
                status_code=exc.status_code,
            ) from exc
        _raise_for_status(response, "list_instances")

        try:
            items = response.json()
        except ValueError:
            return []
        if not isinstance(items, list):
            return []
        return [entry for item in items if (entry := _parse_instance_entry(item))]

    async def send_message(self, phone_number: str, text: str) -> bool:
        instances = await self.list_instances()
        connected = next(
            (item["instanceName"] for item in instances if item["status"] == SessionStatus.OPEN),
            None,
        )
        if connected is None:
            raise NoConnectedInstanceError()

        payload = {"number": normalize_phone_number(phone_number), "text": text}
        try:
            response = await self._client.post(f"/message/sendText/{connected}", json=payload)
        except HttpError as exc:
            raise ProviderError(
                f"Falha ao enviar mensagem: {exc}",
                status_code=exc.status_code,
            ) from exc
        _raise_for_status(response, "send_message")
        logger.info("evolution_message_sent", extra={"instance_name": connected})
        return True


def _raise_for_status(response: httpx.Response, operation: str) -> None:
    if response.is_success:
        return
    logger.warning(
        "evolution_request_rejected",
        extra={"operation": operation, "status_code": response.status_code},
    )
    raise ProviderError(
        f"Evolution API respondeu {response.status_code} em {operation}",
        status_code=response.status_code,
    )


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _parse_instance_entry(item: Any) -> dict[str, str] | None:
    """Aceita os formatos v1 (`instance.status`) e v2 (`connectionStatus`)."""
    if not isinstance(item, dict):
        return None
    nested = item.get("instance") if isinstance(item.get("instance"), dict) else {}
    name = item.get("name") or item.get("instanceName") or nested.get("instanceName")
    if not name:
        return None
    state = item.get("connectionStatus") or nested.get("status") or nested.get("state")
    return {"instanceName": str(name), "status": normalize_provider_state(state)}


def create_evolution_gateway(
    settings: EvolutionSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> EvolutionGateway:
    """Factory do gateway com config padrão.

    Args:
        settings: EvolutionSettings opcional. Se None, carrega do ambiente.
        transport: Transport httpx opcional (testes).
    """
    # Import local para evitar dependência circular
    from config.settings import get_evolution_settings

    evolution = settings or get_evolution_settings()
    client = EvolutionHttpClient(
        base_url=evolution.base_url,
        api_key=evolution.api_key,
        config=HttpClientConfig(
            timeout_seconds=evolution.request_timeout_seconds,
            max_retries=evolution.max_retries,
        ),
        transport=transport,
    )
    return EvolutionGateway(
        client,
        instance_prefix=evolution.instance_prefix,
        integration=evolution.integration,
    )
