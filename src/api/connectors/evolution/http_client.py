"""Cliente HTTP da Evolution API com retry e backoff exponencial.

- Header `apikey` em todas as requisições
- Retry em 429/5xx e erros de conexão/timeout
- Um único httpx.AsyncClient reaproveitado (polling frequente)
- Logs sem apikey e sem corpo de resposta
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

logger = logging.getLogger(__name__)


@dataclass
class HttpClientConfig:
    """Configuração do cliente HTTP."""

    timeout_seconds: float = 30.0
    max_retries: int = 2
    backoff_base_seconds: float = 0.5
    backoff_max_seconds: float = 8.0
    default_headers: dict[str, str] = field(default_factory=dict)


class HttpError(Exception):
    """Erro de requisição HTTP sem dados sensíveis."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        is_retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.is_retryable = is_retryable


class EvolutionHttpClient:
    """Cliente HTTP fino sobre httpx para a Evolution API."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        config: HttpClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or HttpClientConfig()
        headers = {
            "apikey": api_key,
            "Content-Type": "application/json",
            **self._config.default_headers,
        }
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=self._config.timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, path: str) -> httpx.Response:
        return await self.request("GET", path)

    async def post(self, path: str, json: dict[str, Any]) -> httpx.Response:
        return await self.request("POST", path, json=json)

    async def delete(self, path: str) -> httpx.Response:
        return await self.request("DELETE", path)

    async def request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Executa a requisição com retry em falhas transitórias.

        Respostas 4xx (exceto 429) são devolvidas ao chamador.

        Raises:
            HttpError: Falha transitória após esgotar as tentativas.
        """
        for attempt in range(self._config.max_retries + 1):
            try:
                response = await self._client.request(method, path, json=json)
                if response.status_code == 429 or response.status_code >= 500:
                    raise HttpError(
                        "http_retryable_status",
                        status_code=response.status_code,
                        is_retryable=True,
                    )
                return response
            except HttpError as exc:
                if not exc.is_retryable or attempt >= self._config.max_retries:
                    raise
                await _backoff_sleep(attempt, self._config, method, path)
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                if attempt >= self._config.max_retries:
                    raise HttpError(
                        f"http_connection_error: {type(exc).__name__}",
                        is_retryable=True,
                    ) from exc
                await _backoff_sleep(attempt, self._config, method, path)
        raise HttpError("http_retry_exhausted", is_retryable=True)


async def _backoff_sleep(
    attempt: int,
    config: HttpClientConfig,
    method: str,
    path: str,
) -> None:
    backoff = min((2**attempt) * config.backoff_base_seconds, config.backoff_max_seconds)
    logger.info(
        "http_backoff",
        extra={"method": method, "path": path, "attempt": attempt, "backoff_seconds": backoff},
    )
    await asyncio.sleep(backoff)
