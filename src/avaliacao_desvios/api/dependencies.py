"""Dependências injetadas nas rotas."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from avaliacao_desvios.config.settings import Settings
from avaliacao_desvios.domain.protocols import (
    ContextDataLoaderProtocol,
    MutationGatewayProtocol,
)
from avaliacao_desvios.infra.session_registry import AssessmentSession, InMemorySessionRegistry


def get_settings(request: Request) -> Settings:
    """Retorna settings da aplicação."""

    return request.app.state.settings


def get_context_loader(request: Request) -> ContextDataLoaderProtocol:
    """Retorna o loader de contexto ativo."""

    return request.app.state.context_loader


def get_mutation_gateway(request: Request) -> MutationGatewayProtocol:
    """Retorna o gateway de mutação ativo."""

    return request.app.state.mutation_gateway


def get_session_registry(request: Request) -> InMemorySessionRegistry:
    return request.app.state.session_registry


def get_assessment_session(
    session_id: str,
    registry: InMemorySessionRegistry = Depends(get_session_registry),
) -> AssessmentSession:
    """Sessão aberta pelo id do path; 404 se inexistente ou expirada."""
    session = registry.load(session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="session_not_found")
    return session
