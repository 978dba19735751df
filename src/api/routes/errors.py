"""Tradução de exceções do ciclo de conexão para respostas HTTP.

Formato do corpo de erro: `{error, message, timestamp}`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi.responses import JSONResponse

from app.domain.connection import utc_now_iso
from utils.errors import WhatsAppConnectionError

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)


def error_response(code: str, message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": code, "message": message, "timestamp": utc_now_iso()},
    )


async def handle_connection_error(
    request: Request,
    exc: WhatsAppConnectionError,
) -> JSONResponse:
    logger.warning(
        "request_failed",
        extra={
            "path": request.url.path,
            "error_code": exc.code,
            "status_code": exc.http_status,
        },
    )
    return error_response(exc.code, exc.message, exc.http_status)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WhatsAppConnectionError, handle_connection_error)
