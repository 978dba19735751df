"""Aplicação ASGI do Conecta WhatsApp.

    uvicorn app.app:app --host 0.0.0.0 --port 8080

Rode com um único worker: sessões e streams ficam na memória do processo.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.routes import create_api_router, register_exception_handlers
from app.bootstrap import (
    get_connection_orchestrator,
    initialize_app,
    validate_runtime_settings,
)
from app.observability import CORRELATION_HEADER, correlation_scope
from config.logging import get_logger
from config.settings import get_base_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable

    from fastapi import Response

initialize_app()

logger = get_logger(__name__)

SHUTDOWN_DRAIN_SECONDS = 10.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Gerencia ciclo de vida da aplicação.

    Startup:
    - Valida configurações

    Shutdown:
    - Para verificações de status e encerra streams abertos
    - Drena tasks em background e fecha o cliente HTTP do provedor
    """
    service = get_base_settings().service_name
    logger.info("app_starting", extra={"service": service})
    validate_runtime_settings()

    yield

    logger.info("app_shutting_down", extra={"service": service})
    provider = app.dependency_overrides.get(get_connection_orchestrator, get_connection_orchestrator)
    orchestrator = provider()
    await orchestrator.shutdown(timeout_seconds=SHUTDOWN_DRAIN_SECONDS)
    gateway = orchestrator.gateway
    close_async = getattr(gateway, "aclose", None)
    if callable(close_async):
        await close_async()


async def correlation_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Propaga `x-correlation-id` (ou gera um novo) para os logs."""
    with correlation_scope(request.headers.get(CORRELATION_HEADER)) as correlation_id:
        response = await call_next(request)
    response.headers[CORRELATION_HEADER] = correlation_id
    return response


def create_app() -> FastAPI:
    """Cria e configura a aplicação FastAPI."""
    settings = get_base_settings()
    fastapi_app = FastAPI(
        title="Conecta WhatsApp",
        description="Pareamento de instâncias WhatsApp via QR code (Evolution API)",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins) or ["*"],
        allow_credentials=bool(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    fastapi_app.middleware("http")(correlation_middleware)

    register_exception_handlers(fastapi_app)
    fastapi_app.include_router(create_api_router())

    logger.info("app_configured", extra={"service": settings.service_name})

    return fastapi_app


app = create_app()


def main() -> None:
    """Script `conecta-whatsapp`: sobe o uvicorn com um worker."""
    import uvicorn

    port = int(os.getenv("PORT", "8080"))
    reload = not get_base_settings().is_production
    logger.info("app_starting_uvicorn", extra={"port": port, "reload": reload})
    uvicorn.run("app.app:app", host="0.0.0.0", port=port, reload=reload, workers=1)


if __name__ == "__main__":
    main()
