from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import UTC, datetime

import pytest

from avaliacao_desvios.application.collector import AnswerCollector
from avaliacao_desvios.application.controller import AssessmentFlowController
from avaliacao_desvios.config.settings import Settings, get_settings
from avaliacao_desvios.domain.models import (
    ClassificationEntry,
    ContextSnapshot,
    NamedRef,
    Respondent,
    ResponsibleEntry,
    SubjectDetail,
    SubjectImage,
)
from avaliacao_desvios.infra.memory import InMemoryContextDataLoader, InMemoryMutationGateway
from avaliacao_desvios.infra.notifications import RecordingNotifier

SCOPE = "C-100"
OTHER_SCOPE = "C-999"


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """configure_logging() troca os handlers do root; restaura ao final."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture()
def settings() -> Settings:
    """Settings sem atrasos de apresentação (testes determinísticos)."""
    return Settings(
        typing_interval_ms=0,
        message_pause_ms=0,
        cancel_close_delay_ms=0,
        success_close_delay_ms=0,
        context_backend="memory",
    )


@pytest.fixture()
def subject() -> SubjectDetail:
    return SubjectDetail(
        id="desvio-001",
        description="Guarda-corpo solto na plataforma 3",
        location="Plataforma 3",
        status="Aguardando Avaliação",
        classification="Médio",
        local_classification="Local-Médio",
        scope_key=SCOPE,
        nature=NamedRef(id=1, label="Segurança"),
        incident_type=NamedRef(id=2, label="Condição insegura"),
        created_by="Maria",
        created_at=datetime(2026, 3, 10, 14, 30, tzinfo=UTC),
        images=(
            SubjectImage(
                id="img-1",
                file_name="foto1.jpg",
                url="https://storage.example/foto1.jpg",
                category="antes",
            ),
        ),
    )


@pytest.fixture()
def classification_catalog() -> list[ClassificationEntry]:
    return [
        ClassificationEntry(id="p1", global_value="Alto", local_value="Local-Alto", scope_key=SCOPE),
        ClassificationEntry(
            id="p2", global_value="Baixo", local_value="Local-Baixo", scope_key=SCOPE
        ),
        ClassificationEntry(
            id="p9", global_value="Crítico", local_value="Local-Alto", scope_key=OTHER_SCOPE
        ),
    ]


@pytest.fixture()
def responsible_directory() -> list[ResponsibleEntry]:
    return [
        ResponsibleEntry(id="u1", name="Ricardo", registration="R1", scope_key=SCOPE),
        ResponsibleEntry(id="u2", name="Paula", registration="R2", scope_key=SCOPE),
        ResponsibleEntry(id="u9", name="Externo", registration="R9", scope_key=OTHER_SCOPE),
    ]


@pytest.fixture()
def respondent() -> Respondent:
    return Respondent(name="Ana", scope_key=SCOPE)


@pytest.fixture()
def context(
    subject: SubjectDetail,
    classification_catalog: list[ClassificationEntry],
    responsible_directory: list[ResponsibleEntry],
) -> ContextSnapshot:
    return ContextSnapshot(
        subject=subject,
        classification_catalog=tuple(classification_catalog),
        responsible_directory=tuple(responsible_directory),
    )


@pytest.fixture()
def loader(
    subject: SubjectDetail,
    classification_catalog: list[ClassificationEntry],
    responsible_directory: list[ResponsibleEntry],
) -> InMemoryContextDataLoader:
    return InMemoryContextDataLoader(
        subjects=[subject],
        classification_catalog=classification_catalog,
        responsible_directory=responsible_directory,
    )


@pytest.fixture()
def gateway() -> InMemoryMutationGateway:
    return InMemoryMutationGateway()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def controller(
    loader: InMemoryContextDataLoader,
    gateway: InMemoryMutationGateway,
    notifier: RecordingNotifier,
    settings: Settings,
) -> AssessmentFlowController:
    return AssessmentFlowController(loader, gateway, notifier, settings=settings)


@pytest.fixture()
def collector(controller: AssessmentFlowController) -> AnswerCollector:
    return AnswerCollector(controller)
