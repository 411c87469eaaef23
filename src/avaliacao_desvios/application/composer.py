"""Composição e envio do payload de avaliação.

O composer recebe explicitamente o registro final de respostas (nunca relê o
estado mutável da sessão) e valida tudo antes de qualquer chamada de rede.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from avaliacao_desvios.domain.enums import FieldKey
from avaliacao_desvios.domain.errors import BackendError, CompositionError
from avaliacao_desvios.domain.models import (
    ClassificationPair,
    ContextSnapshot,
    GatewayResult,
    SubmissionPayload,
)
from avaliacao_desvios.domain.protocols import MutationGatewayProtocol
from avaliacao_desvios.domain.questions import (
    AnswerValue,
    QuestionSpec,
    classification_entries_in_scope,
)
from avaliacao_desvios.observability.logging import get_logger
from avaliacao_desvios.observability.timing import timed

logger: logging.Logger = get_logger(__name__)


def _is_empty(value: AnswerValue | None) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def ensure_required_answers(
    questions: Sequence[QuestionSpec], answers: Mapping[FieldKey, AnswerValue]
) -> None:
    """Toda pergunta visível e obrigatória no caminho percorrido tem valor."""
    for question in questions:
        if question.field_key is None or not question.required:
            continue
        if question.is_visible(answers) and _is_empty(answers.get(question.field_key)):
            raise CompositionError(f"Campo {question.field_key} é obrigatório")


def resolve_classification(
    answers: Mapping[FieldKey, AnswerValue],
    context: ContextSnapshot,
    scope_key: str,
) -> ClassificationPair:
    """Par de potenciais conforme concordância do avaliador.

    Display values repetidos no catálogo: vale a primeira entrada na ordem do
    catálogo (ambiguidade registrada em log).
    """
    if answers.get(FieldKey.AGREES_WITH_CLASSIFICATION) is True:
        return context.subject.classification_pair

    selected = answers.get(FieldKey.REPLACEMENT_CLASSIFICATION)
    matches = [
        entry
        for entry in classification_entries_in_scope(context.classification_catalog, scope_key)
        if entry.local_value == selected
    ]
    if not matches:
        raise CompositionError("Potencial selecionado não encontrado no catálogo do contrato")
    if len(matches) > 1:
        logger.warning(
            "ambiguous_classification_match",
            extra={"matches": len(matches), "chosen_id": matches[0].id},
        )
    return matches[0].pair


def compose_payload(
    questions: Sequence[QuestionSpec],
    answers: Mapping[FieldKey, AnswerValue],
    context: ContextSnapshot,
    scope_key: str,
) -> SubmissionPayload:
    """Monta o SubmissionPayload ou falha rápido com CompositionError."""
    action = answers.get(FieldKey.ACTION)
    if not isinstance(action, str) or not action.strip():
        raise CompositionError("Campo ação é obrigatório e não pode estar vazio")

    ensure_required_answers(questions, answers)

    responsible = answers.get(FieldKey.RESPONSIBLE)
    client_responsibility = answers.get(FieldKey.CLIENT_RESPONSIBILITY)
    if not isinstance(responsible, str) or not isinstance(client_responsibility, bool):
        raise CompositionError("Respostas da avaliação com tipo inesperado")

    return SubmissionPayload(
        responsible_party_id=responsible,
        action_description=action,
        is_client_responsibility=client_responsibility,
        classification_pair=resolve_classification(answers, context, scope_key),
    )


class SubmissionComposer:
    """Monta o payload e chama o gateway de mutação uma única vez."""

    def __init__(
        self,
        gateway: MutationGatewayProtocol,
        questions: Sequence[QuestionSpec],
    ) -> None:
        self._gateway = gateway
        self._questions = questions

    def compose(
        self,
        answers: Mapping[FieldKey, AnswerValue],
        context: ContextSnapshot,
        scope_key: str,
    ) -> SubmissionPayload:
        return compose_payload(self._questions, answers, context, scope_key)

    async def submit(self, subject_id: str, payload: SubmissionPayload) -> GatewayResult:
        """Envia a avaliação (sem retry no nível da sessão).

        Raises:
            BackendError: gateway retornou success=False ou lançou exceção.
        """
        try:
            with timed("submission"):
                result = await self._gateway.submit_assessment(subject_id, payload)
        except BackendError:
            raise
        except Exception as e:
            logger.error(
                "Falha ao submeter avaliação",
                extra={"error": type(e).__name__},
            )
            raise BackendError("Erro ao avaliar desvio") from e

        if not result.success:
            logger.warning("Avaliação recusada pelo backend")
            raise BackendError(result.message or "Erro ao avaliar desvio")
        return result
