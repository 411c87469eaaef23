"""Coletor de respostas — adaptador polimórfico por tipo de entrada.

- Choice: commit imediato na seleção
- Text/LongText: valor em buffer; commit liberado pelo validador
- Select: opções resolvidas dinamicamente (escopo do avaliador); commit exige
  valor presente entre as opções

ValidationError nunca escapa deste módulo: apenas desabilita o commit.
"""

from __future__ import annotations

import logging
from typing import assert_never

from avaliacao_desvios.application.controller import AssessmentFlowController
from avaliacao_desvios.domain.errors import ValidationError
from avaliacao_desvios.domain.models import Option
from avaliacao_desvios.domain.questions import (
    AnswerValue,
    ChoiceQuestion,
    LongTextQuestion,
    QuestionSpec,
    SelectQuestion,
    TextQuestion,
)
from avaliacao_desvios.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


def _coerce_choice(raw: AnswerValue) -> AnswerValue:
    """Aceita "true"/"false" vindos de formulários como booleanos."""
    if isinstance(raw, str) and raw.lower() in ("true", "false"):
        return raw.lower() == "true"
    return raw


def _match_option(options: list[Option], raw: AnswerValue) -> Option:
    for option in options:
        if option.value == raw and type(option.value) is type(raw):
            return option
    raise ValidationError("Opção inválida para a pergunta")


class AnswerCollector:
    """Coleta e valida a resposta da pergunta corrente do controller."""

    def __init__(self, controller: AssessmentFlowController) -> None:
        self._controller = controller
        self._buffer: AnswerValue | None = None
        self._buffer_question_id: str | None = None

    @property
    def question(self) -> QuestionSpec | None:
        return self._controller.current_question

    def options(self) -> list[Option]:
        """Opções da pergunta corrente (vazia para perguntas de texto)."""
        question = self.question
        prompt = self._controller.prompt_context()
        if question is None or prompt is None:
            return []

        match question:
            case ChoiceQuestion():
                return list(question.options)
            case SelectQuestion():
                return question.options_resolver(prompt)
            case TextQuestion() | LongTextQuestion():
                return []
            case _:
                assert_never(question)

    def stage(self, raw: AnswerValue) -> bool:
        """Guarda o valor editado (texto/select). Retorna `can_commit`."""
        question = self.question
        self._buffer = raw
        self._buffer_question_id = question.id if question else None
        return self.can_commit

    @property
    def buffer(self) -> AnswerValue | None:
        question = self.question
        if question is None or question.id != self._buffer_question_id:
            return None
        return self._buffer

    @property
    def can_commit(self) -> bool:
        question = self.question
        if question is None or not self._controller.accepting_input:
            return False
        if isinstance(question, ChoiceQuestion):
            return False
        buffered = self.buffer
        if buffered is None:
            return False
        try:
            self._validate(question, buffered)
        except ValidationError:
            return False
        return True

    def accepts(self, raw: AnswerValue) -> bool:
        """Indica se `raw` seria aceito agora, sem commit nem buffer."""
        question = self.question
        if question is None or not self._controller.accepting_input:
            return False
        if isinstance(question, ChoiceQuestion):
            raw = _coerce_choice(raw)
        try:
            self._validate(question, raw)
        except ValidationError:
            return False
        return True

    async def choose(self, raw: AnswerValue) -> bool:
        """Seleção em pergunta de escolha única: commit imediato."""
        question = self.question
        if not isinstance(question, ChoiceQuestion) or not self._controller.accepting_input:
            return False
        try:
            value, display = self._validate(question, _coerce_choice(raw))
        except ValidationError:
            logger.debug("choice_rejected", extra={"question_id": question.id})
            return False
        await self._controller.commit(value, display)
        return True

    async def commit(self) -> bool:
        """Confirma o valor em buffer (texto/select) se válido."""
        question = self.question
        buffered = self.buffer
        if question is None or buffered is None or not self._controller.accepting_input:
            return False
        try:
            value, display = self._validate(question, buffered)
        except ValidationError:
            logger.debug("commit_blocked", extra={"question_id": question.id})
            return False

        self._buffer = None
        self._buffer_question_id = None
        await self._controller.commit(value, display)
        return True

    async def submit(self, raw: AnswerValue, question_id: str | None = None) -> bool:
        """Atalho do host: escolhe (choice) ou stage + commit (demais tipos).

        Com `question_id`, a resposta só vale se essa ainda for a pergunta corrente.
        """
        question = self.question
        if question_id is not None and (question is None or question.id != question_id):
            logger.info(
                "stale_answer_discarded",
                extra={
                    "question_id": question_id,
                    "current_question_id": question.id if question else None,
                },
            )
            return False
        if isinstance(question, ChoiceQuestion):
            return await self.choose(raw)
        self.stage(raw)
        return await self.commit()

    def _validate(self, question: QuestionSpec, raw: AnswerValue) -> tuple[AnswerValue, str]:
        """Retorna (valor, texto exibido no transcript) ou lança ValidationError."""
        match question:
            case ChoiceQuestion():
                option = _match_option(list(question.options), raw)
                return option.value, option.label
            case TextQuestion() | LongTextQuestion():
                if not isinstance(raw, str):
                    raise ValidationError("Resposta de texto esperada")
                text = raw.strip()
                if not text or not question.validator(text):
                    raise ValidationError("Resposta não atende ao critério mínimo")
                return text, text
            case SelectQuestion():
                if raw == "" or raw is None:
                    raise ValidationError("Seleção obrigatória")
                option = _match_option(self.options(), raw)
                return option.value, option.label
            case _:
                assert_never(question)
