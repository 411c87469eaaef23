"""Backends em memória para contexto e mutação (apenas dev/testes)."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from avaliacao_desvios.domain.errors import ContextLoadError
from avaliacao_desvios.domain.models import (
    ClassificationEntry,
    GatewayResult,
    ResponsibleEntry,
    SubjectDetail,
    SubmissionPayload,
)
from avaliacao_desvios.domain.protocols import (
    ContextDataLoaderProtocol,
    MutationGatewayProtocol,
)
from avaliacao_desvios.observability.logging import get_logger
from avaliacao_desvios.utils.ids import short_id

logger: logging.Logger = get_logger(__name__)


class InMemoryContextDataLoader(ContextDataLoaderProtocol):
    """Contexto em memória (não usar em produção)."""

    def __init__(
        self,
        subjects: Iterable[SubjectDetail] = (),
        classification_catalog: Iterable[ClassificationEntry] = (),
        responsible_directory: Iterable[ResponsibleEntry] = (),
    ) -> None:
        self._subjects: dict[str, SubjectDetail] = {s.id: s for s in subjects}
        self._catalog = list(classification_catalog)
        self._directory = list(responsible_directory)

    def add_subject(self, subject: SubjectDetail) -> None:
        self._subjects[subject.id] = subject

    def set_classification_catalog(self, entries: Iterable[ClassificationEntry]) -> None:
        self._catalog = list(entries)

    def set_responsible_directory(self, entries: Iterable[ResponsibleEntry]) -> None:
        self._directory = list(entries)

    async def get_subject(self, subject_id: str) -> SubjectDetail:
        subject = self._subjects.get(subject_id)
        if subject is None:
            logger.debug("Subject not found (in-memory)", extra={"subject_id": short_id(subject_id)})
            raise ContextLoadError("Desvio não encontrado")
        return subject

    async def get_classification_catalog(self, scope_key: str) -> list[ClassificationEntry]:
        return [entry for entry in self._catalog if entry.scope_key == scope_key]

    async def get_responsible_directory(self, scope_key: str) -> list[ResponsibleEntry]:
        return [entry for entry in self._directory if entry.scope_key == scope_key]


class InMemoryMutationGateway(MutationGatewayProtocol):
    """Gateway que registra as chamadas e devolve um resultado configurável."""

    def __init__(self, result: GatewayResult | None = None) -> None:
        self.result = result or GatewayResult(success=True)
        self.calls: list[tuple[str, SubmissionPayload]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def submit_assessment(
        self, subject_id: str, payload: SubmissionPayload
    ) -> GatewayResult:
        self.calls.append((subject_id, payload))
        logger.debug(
            "Assessment recorded (in-memory)",
            extra={"subject_id": short_id(subject_id), "success": self.result.success},
        )
        return self.result
