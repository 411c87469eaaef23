"""Fábrica da aplicação FastAPI."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from avaliacao_desvios.api.routes import router
from avaliacao_desvios.config.settings import Settings, get_settings
from avaliacao_desvios.domain.protocols import (
    ContextDataLoaderProtocol,
    MutationGatewayProtocol,
)
from avaliacao_desvios.infra.backend_api import HttpContextDataLoader, HttpMutationGateway
from avaliacao_desvios.infra.http import HttpClient, create_http_client
from avaliacao_desvios.infra.memory import InMemoryContextDataLoader, InMemoryMutationGateway
from avaliacao_desvios.infra.session_registry import InMemorySessionRegistry
from avaliacao_desvios.observability.logging import configure_logging, get_logger
from avaliacao_desvios.observability.middleware import CorrelationIdMiddleware

logger = get_logger(__name__)


def _create_backends(
    settings: Settings,
) -> tuple[ContextDataLoaderProtocol, MutationGatewayProtocol, HttpClient | None]:
    """Cria loader de contexto e gateway de mutação conforme CONTEXT_BACKEND."""
    if settings.context_backend.lower() == "http":
        client = create_http_client(settings)
        return HttpContextDataLoader(client), HttpMutationGateway(client), client

    logger.warning("context_backend_memory", extra={"environment": settings.environment})
    return InMemoryContextDataLoader(), InMemoryMutationGateway(), None


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    client: HttpClient | None = app.state.http_client
    if client is not None:
        await client.close()
        logger.info("Cliente HTTP encerrado")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Cria a aplicação FastAPI."""
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.service_name, settings.log_format)

    validation_errors: list[str] = []
    validation_errors.extend(settings.validate_presentation_config())
    validation_errors.extend(settings.validate_context_backend())

    if validation_errors:
        error_msg = "; ".join(validation_errors)
        raise ValueError(f"Configuração inválida: {error_msg}")

    app = FastAPI(title=settings.service_name, version=settings.version, lifespan=_lifespan)
    app.add_middleware(CorrelationIdMiddleware)
    app.include_router(router)

    app.state.settings = settings
    (
        app.state.context_loader,
        app.state.mutation_gateway,
        app.state.http_client,
    ) = _create_backends(settings)
    app.state.session_registry = InMemorySessionRegistry(settings.session_ttl_seconds)

    return app


app = create_app()
