"""Camada de infraestrutura — adapters para serviços externos.

- Contexto/mutação: HttpContextDataLoader, HttpMutationGateway (API de desvios)
- Dev/testes: InMemoryContextDataLoader, InMemoryMutationGateway
- Notificações: RecordingNotifier
- Sessões da API: InMemorySessionRegistry
- HTTP: HttpClient

Infraestrutura não decide regra de negócio; domínio não conhece infraestrutura.
"""

from avaliacao_desvios.infra.backend_api import HttpContextDataLoader, HttpMutationGateway
from avaliacao_desvios.infra.http import (
    HttpClient,
    HttpClientConfig,
    HttpError,
    create_http_client,
)
from avaliacao_desvios.infra.memory import InMemoryContextDataLoader, InMemoryMutationGateway
from avaliacao_desvios.infra.notifications import RecordingNotifier
from avaliacao_desvios.infra.session_registry import AssessmentSession, InMemorySessionRegistry

__all__ = [
    # Backend
    "HttpContextDataLoader",
    "HttpMutationGateway",
    "InMemoryContextDataLoader",
    "InMemoryMutationGateway",
    # Notificações
    "RecordingNotifier",
    # Sessões
    "AssessmentSession",
    "InMemorySessionRegistry",
    # HTTP
    "HttpClient",
    "HttpClientConfig",
    "HttpError",
    "create_http_client",
]
