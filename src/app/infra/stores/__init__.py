"""Stores: implementações concretas de estado.

Módulos disponíveis:
    - memory_stores: registro de sessões de pareamento em memória
"""

from __future__ import annotations

from app.infra.stores.memory_stores import MemoryInstanceRegistry

__all__ = [
    "MemoryInstanceRegistry",
]
