"""Carregamento do ContextSnapshot da sessão (uma vez, na abertura).

Desvio, catálogo de potenciais e diretório de responsáveis são buscados em
paralelo. A falha do desvio é fatal (ContextLoadError); falhas dos catálogos
degradam para lista vazia com log de fallback.
"""

from __future__ import annotations

import asyncio
import logging

from avaliacao_desvios.domain.errors import ContextLoadError
from avaliacao_desvios.domain.models import ContextSnapshot, Respondent
from avaliacao_desvios.domain.protocols import ContextDataLoaderProtocol
from avaliacao_desvios.observability.logging import get_logger, log_fallback
from avaliacao_desvios.observability.timing import timed

logger: logging.Logger = get_logger(__name__)


async def load_context_snapshot(
    loader: ContextDataLoaderProtocol,
    subject_id: str,
    respondent: Respondent,
) -> ContextSnapshot:
    """Busca o contexto completo antes de qualquer apresentação.

    Raises:
        ContextLoadError: se o desvio não puder ser carregado.
    """
    scope_key = respondent.scope_key
    with timed("context_load"):
        subject, catalog, directory = await asyncio.gather(
            loader.get_subject(subject_id),
            loader.get_classification_catalog(scope_key),
            loader.get_responsible_directory(scope_key),
            return_exceptions=True,
        )

    if isinstance(subject, BaseException):
        logger.error(
            "Falha ao carregar desvio",
            extra={"error": type(subject).__name__},
        )
        raise ContextLoadError("Erro ao carregar dados necessários") from subject

    if isinstance(catalog, BaseException):
        log_fallback(logger, "classification_catalog", reason=type(catalog).__name__)
        catalog = []

    if isinstance(directory, BaseException):
        log_fallback(logger, "responsible_directory", reason=type(directory).__name__)
        directory = []

    logger.info(
        "Contexto da avaliação carregado",
        extra={
            "catalog_size": len(catalog),
            "directory_size": len(directory),
            "images": len(subject.images),
        },
    )
    return ContextSnapshot(
        subject=subject,
        classification_catalog=tuple(catalog),
        responsible_directory=tuple(directory),
    )
