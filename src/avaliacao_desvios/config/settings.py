"""Configurações da aplicação via variáveis de ambiente.

Todas as configurações são carregadas de env vars (ou arquivo .env em dev).
Nunca hardcode tokens da API de backend.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict

from avaliacao_desvios.observability.logging import get_logger

# -----------------------------------------------------------------------------
# Rotas da API de desvios consumidas pelo motor de avaliação
# -----------------------------------------------------------------------------
SUBJECT_PATH: str = "/api/desvios/{subject_id}"
ASSESSMENT_PATH: str = "/api/desvios/{subject_id}/avaliar"
CLASSIFICATION_CATALOG_PATH: str = "/api/security-params/potentials"
RESPONSIBLE_DIRECTORY_PATH: str = "/api/users"


class Settings(BaseSettings):
    """Configurações lidas do ambiente."""

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
    )

    # Aplicação
    service_name: str = "avaliacao_desvios"
    version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "json"  # json | text

    # Apresentação das mensagens (simulação de digitação)
    typing_interval_ms: int = 20  # Intervalo entre caracteres revelados
    message_pause_ms: int = 500  # Pausa após cada mensagem
    cancel_close_delay_ms: int = 1500  # Fechamento após avaliação recusada
    success_close_delay_ms: int = 2000  # Fechamento após avaliação concluída

    # Validação de respostas
    action_min_length: int = 10  # Mínimo de caracteres da ação corretiva

    # Backend de contexto e mutação
    context_backend: str = "memory"  # memory | http
    backend_api_base_url: str | None = None
    backend_api_token: str | None = None  # Bearer token da API de desvios
    backend_request_timeout_seconds: float = 30.0
    backend_max_retries: int = 3  # apenas leituras (GET); o PUT da avaliação nunca é repetido
    backend_retry_backoff_seconds: float = 2.0

    # Registro de sessões da API
    session_ttl_seconds: int = 7200

    @property
    def typing_interval_seconds(self) -> float:
        """Intervalo de digitação em segundos."""
        return self.typing_interval_ms / 1000

    @property
    def message_pause_seconds(self) -> float:
        """Pausa entre mensagens em segundos."""
        return self.message_pause_ms / 1000

    @property
    def cancel_close_delay_seconds(self) -> float:
        return self.cancel_close_delay_ms / 1000

    @property
    def success_close_delay_seconds(self) -> float:
        return self.success_close_delay_ms / 1000

    @property
    def is_production(self) -> bool:
        """Retorna True se ambiente é produção."""
        return self.environment.lower() in ("production", "prod")

    @property
    def is_staging(self) -> bool:
        """Retorna True se ambiente é staging."""
        return self.environment.lower() in ("staging", "stage")

    @property
    def is_development(self) -> bool:
        """Retorna True se ambiente é desenvolvimento."""
        return self.environment.lower() in ("development", "dev", "local")

    def validate_presentation_config(self) -> list[str]:
        """Valida tempos de apresentação (nenhum pode ser negativo)."""
        errors: list[str] = []
        delays = {
            "TYPING_INTERVAL_MS": self.typing_interval_ms,
            "MESSAGE_PAUSE_MS": self.message_pause_ms,
            "CANCEL_CLOSE_DELAY_MS": self.cancel_close_delay_ms,
            "SUCCESS_CLOSE_DELAY_MS": self.success_close_delay_ms,
        }
        for name, value in delays.items():
            if value < 0:
                errors.append(f"{name} deve ser >= 0")
        if self.action_min_length < 1:
            errors.append("ACTION_MIN_LENGTH deve ser >= 1")
        return errors

    def validate_context_backend(self) -> list[str]:
        """Valida backend de contexto/mutação por ambiente.

        Em staging/prod, memory é proibido (dados fictícios).
        Retorna lista de erros (vazia = tudo OK).
        """
        errors: list[str] = []
        backend = self.context_backend.lower()

        valid_backends = {"memory", "http"}
        if backend not in valid_backends:
            errors.append(
                f"CONTEXT_BACKEND '{backend}' inválido. Valores válidos: {valid_backends}"
            )

        if backend == "memory" and (self.is_staging or self.is_production):
            errors.append("CONTEXT_BACKEND=memory é proibido em staging/production")

        if backend == "http":
            if not self.backend_api_base_url:
                errors.append("CONTEXT_BACKEND=http requer BACKEND_API_BASE_URL configurado")
            elif (self.is_staging or self.is_production) and self.backend_api_base_url.startswith(
                "http://"
            ):
                errors.append("BACKEND_API_BASE_URL deve usar https em staging/production")
            if not self.backend_api_token:
                errors.append("CONTEXT_BACKEND=http requer BACKEND_API_TOKEN configurado")

        if self.backend_max_retries < 0:
            errors.append("BACKEND_MAX_RETRIES deve ser >= 0")
        return errors

    def model_post_init(self, __context: Any) -> None:
        """Registra ambiente carregado (sem expor tokens)."""
        logger: logging.Logger = get_logger(__name__)
        logger.debug(
            "Settings carregadas",
            extra={
                "environment": self.environment,
                "context_backend": self.context_backend,
                "backend_token_configured": bool(self.backend_api_token),
            },
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Retorna uma instância cacheada de Settings.

    A cache garante que mesmo múltiplas injeções não criam novos objetos.
    """
    return Settings()
