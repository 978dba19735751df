"""Agregador de settings do serviço.

Re-exporta todas as settings e funções de cada módulo.
Organização por domínio para isolamento de mudanças.
"""

from __future__ import annotations

# Base settings
from config.settings.base import (
    BaseSettings,
    Environment,
    get_base_settings,
)

# Evolution API (WhatsApp)
from config.settings.evolution import (
    DEFAULT_INSTANCE_PREFIX,
    DEFAULT_INTEGRATION,
    EvolutionSettings,
    get_evolution_settings,
)

__all__ = [
    # Constants
    "DEFAULT_INSTANCE_PREFIX",
    "DEFAULT_INTEGRATION",
    # Base
    "BaseSettings",
    "Environment",
    # Evolution
    "EvolutionSettings",
    "get_base_settings",
    "get_evolution_settings",
]
