"""Settings gerais do serviço (ambiente, logs, CORS)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

Environment = Literal["development", "staging", "production"]

_ENVIRONMENT_ALIASES: dict[str, Environment] = {
    "production": "production",
    "prod": "production",
    "staging": "staging",
    "stage": "staging",
}
_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True)
class BaseSettings:
    """Configurações gerais.

    Attributes:
        environment: development|staging|production
        service_name: Nome do serviço nos logs e no /health
        debug: Modo debug
        log_level: Nível do root logger
        cors_origins: Origens do frontend liberadas (vazio = qualquer origem)
    """

    environment: Environment = "development"
    service_name: str = "conecta-whatsapp"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: tuple[str, ...] = ()

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_strict(self) -> bool:
        """Configuração inválida impede o boot."""
        return self.environment != "development"

    def validate(self) -> list[str]:
        errors: list[str] = []

        if not self.service_name:
            errors.append("SERVICE_NAME não pode ser vazio")

        if self.log_level not in _LOG_LEVELS:
            errors.append(f"LOG_LEVEL inválido: {self.log_level}")

        invalid_origins = [
            origin for origin in self.cors_origins if not origin.startswith(("http://", "https://"))
        ]
        if invalid_origins:
            errors.append(f"FRONTEND_ORIGINS com origem inválida: {', '.join(invalid_origins)}")

        if self.is_production and not self.cors_origins:
            errors.append("FRONTEND_ORIGINS obrigatório em produção")

        return errors


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("true", "1", "yes")


def _load_base_from_env() -> BaseSettings:
    raw_environment = os.getenv("ENVIRONMENT", "development").strip().lower()
    origins = os.getenv("FRONTEND_ORIGINS", "")
    return BaseSettings(
        environment=_ENVIRONMENT_ALIASES.get(raw_environment, "development"),
        service_name=os.getenv("SERVICE_NAME", "conecta-whatsapp"),
        debug=_env_flag("DEBUG"),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
        cors_origins=tuple(item.strip() for item in origins.split(",") if item.strip()),
    )


@lru_cache(maxsize=1)
def get_base_settings() -> BaseSettings:
    """Retorna instância cacheada de BaseSettings."""
    return _load_base_from_env()
