"""Rotas HTTP do host da avaliação conversacional.

A apresentação (digitação simulada) roda em background task; as rotas
respondem imediatamente e o host acompanha pelo GET da sessão.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from pydantic import BaseModel

from avaliacao_desvios.api.dependencies import (
    get_assessment_session,
    get_context_loader,
    get_mutation_gateway,
    get_session_registry,
    get_settings,
)
from avaliacao_desvios.application.collector import AnswerCollector
from avaliacao_desvios.application.controller import AssessmentFlowController, SessionOutcome
from avaliacao_desvios.config.settings import Settings
from avaliacao_desvios.domain.models import Respondent
from avaliacao_desvios.domain.protocols import (
    ContextDataLoaderProtocol,
    MutationGatewayProtocol,
)
from avaliacao_desvios.infra.notifications import RecordingNotifier
from avaliacao_desvios.infra.session_registry import AssessmentSession, InMemorySessionRegistry
from avaliacao_desvios.observability.logging import get_logger
from avaliacao_desvios.observability.middleware import bind_session_id
from avaliacao_desvios.utils.ids import short_id

logger = get_logger(__name__)

router = APIRouter()


class OpenAssessmentRequest(BaseModel):
    subject_id: str
    respondent: Respondent


class AnswerRequest(BaseModel):
    value: bool | str
    question_id: str | None = None  # pergunta que o host exibia ao responder


def _session_view(session: AssessmentSession) -> dict[str, Any]:
    """Visão serializável da sessão para o host."""
    controller = session.controller
    finished = session.state.is_terminal or not controller.is_open
    question = None if finished else controller.current_question
    current: dict[str, Any] | None = None
    if question is not None:
        current = {
            "id": question.id,
            "kind": question.kind,
            "options": [option.model_dump() for option in session.collector.options()],
            "accepting_input": controller.accepting_input,
        }

    return {
        "session_id": session.session_id,
        "subject_id": session.state.subject_id,
        "phase": session.state.phase,
        "open": controller.is_open,
        "transcript": [message.model_dump(mode="json") for message in session.state.transcript],
        "current_question": current,
        "notifications": [n.model_dump(mode="json") for n in session.notifier.notifications],
        "outcome_message": session.outcome.message if session.outcome else None,
    }


@router.get("/health")
def health(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    """Healthcheck simples."""
    return {"status": "ok", "service": settings.service_name, "version": settings.version}


@router.post("/avaliacoes", status_code=status.HTTP_202_ACCEPTED)
async def open_assessment(
    body: OpenAssessmentRequest,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
    loader: ContextDataLoaderProtocol = Depends(get_context_loader),
    gateway: MutationGatewayProtocol = Depends(get_mutation_gateway),
    registry: InMemorySessionRegistry = Depends(get_session_registry),
) -> dict[str, Any]:
    """Abre a conversa; contexto e primeira pergunta chegam em background."""
    notifier = RecordingNotifier()
    controller = AssessmentFlowController(loader, gateway, notifier, settings=settings)
    state = controller.start(body.subject_id, body.respondent)
    session = AssessmentSession(
        controller=controller,
        collector=AnswerCollector(controller),
        notifier=notifier,
        state=state,
    )

    def _record_outcome(outcome: SessionOutcome) -> None:
        session.outcome = outcome

    controller.on_outcome(_record_outcome)
    registry.save(session)
    bind_session_id(state.session_id)
    background_tasks.add_task(controller.run)

    logger.info("assessment_opened", extra={"subject_id": short_id(body.subject_id)})
    return {"session_id": state.session_id, "phase": state.phase}


@router.get("/avaliacoes/{session_id}")
async def get_assessment(
    session: AssessmentSession = Depends(get_assessment_session),
) -> dict[str, Any]:
    return _session_view(session)


@router.post("/avaliacoes/{session_id}/respostas", status_code=status.HTTP_202_ACCEPTED)
async def answer_question(
    body: AnswerRequest,
    background_tasks: BackgroundTasks,
    session: AssessmentSession = Depends(get_assessment_session),
) -> dict[str, Any]:
    """Valida a resposta agora; o commit e a próxima apresentação rodam em background.

    O commit em background fica preso à pergunta validada aqui: se outra
    resposta avançar a conversa antes, ele é descartado.
    """
    question = session.controller.current_question
    if question is not None and body.question_id not in (None, question.id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "question_mismatch",
                "question_id": question.id,
                "answered_question_id": body.question_id,
            },
        )
    if question is None or not session.collector.accepts(body.value):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "error": "answer_rejected",
                "question_id": question.id if question else None,
                "accepting_input": session.controller.accepting_input,
            },
        )

    background_tasks.add_task(session.collector.submit, body.value, question.id)
    return {"session_id": session.session_id, "question_id": question.id}


@router.delete("/avaliacoes/{session_id}")
async def close_assessment(
    session_id: str,
    registry: InMemorySessionRegistry = Depends(get_session_registry),
) -> dict[str, Any]:
    """Fecha a sessão (cancela qualquer apresentação pendente)."""
    if not registry.delete(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="session_not_found")
    return {"session_id": session_id, "closed": True}
