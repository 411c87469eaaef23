"""Protocolo de domínio para carregamento de contexto (somente leitura)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from avaliacao_desvios.domain.models import (
        ClassificationEntry,
        ResponsibleEntry,
        SubjectDetail,
    )


class ContextDataLoaderProtocol(ABC):
    """Contrato mínimo assíncrono para os dados de referência da sessão."""

    @abstractmethod
    async def get_subject(self, subject_id: str) -> SubjectDetail: ...

    @abstractmethod
    async def get_classification_catalog(self, scope_key: str) -> list[ClassificationEntry]: ...

    @abstractmethod
    async def get_responsible_directory(self, scope_key: str) -> list[ResponsibleEntry]: ...
