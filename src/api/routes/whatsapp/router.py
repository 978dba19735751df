"""Router agregador do canal WhatsApp."""

from __future__ import annotations

from fastapi import APIRouter

from api.routes.whatsapp.connection import router as connection_router

router = APIRouter()
router.include_router(connection_router)
