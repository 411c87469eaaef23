"""Controller do fluxo de avaliação — máquina de estados da sessão.

Fluxo:
    open → contexto (1x) → resumo do desvio → pergunta i → commit do coletor
    → próxima pergunta visível (predicados) → ... → composição → envio
    → mensagem terminal

Regras:
- A resposta final é passada explicitamente para a composição
  (nunca relida do estado mutável)
- Toda suspensão verifica o token de cancelamento; após close() nenhuma
  mutação do SessionState é observável
- Violação de invariante interna é fatal: log + reset, nunca exibida ao avaliador
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from avaliacao_desvios.application.composer import SubmissionComposer
from avaliacao_desvios.application.context_loader import load_context_snapshot
from avaliacao_desvios.application.fsm_engine import FSMEngine
from avaliacao_desvios.application.preamble import (
    render_attachment_caption,
    render_subject_summary,
)
from avaliacao_desvios.application.scheduler import MessageScheduler, SleepFn
from avaliacao_desvios.application.session.models import SessionState
from avaliacao_desvios.config.settings import Settings, get_settings
from avaliacao_desvios.domain.enums import NotificationKind, Origin
from avaliacao_desvios.domain.errors import (
    BackendError,
    CancellationSignal,
    CompositionError,
    ContextLoadError,
    EngineInvariantError,
)
from avaliacao_desvios.domain.models import ContextSnapshot, Respondent, SubjectDetail
from avaliacao_desvios.domain.protocols import (
    ContextDataLoaderProtocol,
    MutationGatewayProtocol,
    NotifierProtocol,
)
from avaliacao_desvios.domain.questions import (
    AnswerRecord,
    AnswerValue,
    ChoiceQuestion,
    PromptContext,
    QuestionSpec,
    SelectQuestion,
    build_catalog,
    next_visible_index,
)
from avaliacao_desvios.domain.session.events import SessionEvent
from avaliacao_desvios.domain.session.states import Phase
from avaliacao_desvios.observability.logging import get_logger
from avaliacao_desvios.utils.ids import new_session_id, short_id

logger: logging.Logger = get_logger(__name__)

DECLINED_TEXT = "Avaliação cancelada. Fechando formulário..."
PROCESSING_TEXT = "Processando avaliação... ⏳"
SUCCESS_TEXT = '✅ Avaliação concluída com sucesso! O desvio foi movido para "Em Andamento".'
FAILURE_TEXT = "❌ Erro ao processar avaliação. Tente novamente."
SUCCESS_NOTIFICATION = "Desvio avaliado com sucesso!"
NO_OPTIONS_TEXT = "Nenhuma opção disponível para continuar a avaliação"


@dataclass(frozen=True, slots=True)
class SessionOutcome:
    """Desfecho terminal entregue aos callbacks do host."""

    session_id: str
    subject_id: str
    phase: Phase
    message: str | None = None
    subject: SubjectDetail | None = None

    @property
    def succeeded(self) -> bool:
        return self.phase == Phase.SUCCEEDED


OutcomeCallback = Callable[[SessionOutcome], None]


class AssessmentFlowController:
    """Conduz uma única conversa de avaliação por vez."""

    def __init__(
        self,
        loader: ContextDataLoaderProtocol,
        gateway: MutationGatewayProtocol,
        notifier: NotifierProtocol,
        settings: Settings | None = None,
        questions: Sequence[QuestionSpec] | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._settings = settings or get_settings()
        self._questions = tuple(questions or build_catalog(self._settings.action_min_length))
        self._loader = loader
        self._notifier = notifier
        self._composer = SubmissionComposer(gateway, self._questions)
        self._engine = FSMEngine()
        self._sleep = sleep
        self._outcome_callbacks: list[OutcomeCallback] = []

        self._state: SessionState | None = None
        self._context: ContextSnapshot | None = None
        self._respondent: Respondent | None = None
        self._scheduler: MessageScheduler | None = None

    # ------------------------------------------------------------------
    # Leitura (host/coletor)
    # ------------------------------------------------------------------

    @property
    def questions(self) -> tuple[QuestionSpec, ...]:
        return self._questions

    @property
    def state(self) -> SessionState | None:
        return self._state

    @property
    def context(self) -> ContextSnapshot | None:
        return self._context

    @property
    def is_open(self) -> bool:
        return self._state is not None

    @property
    def current_question(self) -> QuestionSpec | None:
        state = self._state
        if state is None or state.question_index < 0:
            return None
        return self._questions[state.question_index]

    @property
    def accepting_input(self) -> bool:
        """True apenas em AWAITING_INPUT, com nenhuma mensagem em revelação."""
        return (
            self._state is not None
            and self._state.phase == Phase.AWAITING_INPUT
            and self._scheduler is not None
            and not self._scheduler.busy
        )

    def prompt_context(self) -> PromptContext | None:
        if self._state is None or self._context is None or self._respondent is None:
            return None
        return PromptContext(
            respondent=self._respondent,
            context=self._context,
            answers=dict(self._state.answers),
        )

    def on_outcome(self, callback: OutcomeCallback) -> None:
        """Registra callback chamado em SUCCEEDED, FAILED ou CANCELLED."""
        self._outcome_callbacks.append(callback)

    def on_success(self, callback: OutcomeCallback) -> None:
        """Registra callback chamado apenas em SUCCEEDED."""

        def _when_succeeded(outcome: SessionOutcome) -> None:
            if outcome.succeeded:
                callback(outcome)

        self._outcome_callbacks.append(_when_succeeded)

    # ------------------------------------------------------------------
    # Ciclo de vida
    # ------------------------------------------------------------------

    def start(self, subject_id: str, respondent: Respondent) -> SessionState:
        """Cria a sessão (fase GREETING) sem apresentar nada ainda."""
        if self._state is not None:
            self.close()

        self._scheduler = MessageScheduler(
            typing_interval=self._settings.typing_interval_seconds,
            pause=self._settings.message_pause_seconds,
            sleep=self._sleep,
        )
        self._respondent = respondent
        self._state = SessionState(session_id=new_session_id(), subject_id=subject_id)
        logger.info(
            "Nova sessão de avaliação",
            extra={
                "session_id": short_id(self._state.session_id),
                "subject_id": short_id(subject_id),
            },
        )
        return self._state

    async def run(self) -> None:
        """Carrega o contexto, apresenta o resumo e a primeira pergunta."""
        state, scheduler = self._state, self._scheduler
        if state is None or scheduler is None or self._respondent is None:
            logger.debug("run_without_session_ignored")
            return

        try:
            try:
                context = await load_context_snapshot(
                    self._loader, state.subject_id, self._respondent
                )
            except ContextLoadError as e:
                scheduler.token.raise_if_cancelled()
                self._notify(NotificationKind.ERROR, str(e))
                self._transition(state, SessionEvent.CONTEXT_LOAD_FAILED)
                self._emit_outcome(state, message=str(e))
                return

            scheduler.token.raise_if_cancelled()
            self._context = context
            await self._present_preamble(state, scheduler, context)
            self._transition(state, SessionEvent.PREAMBLE_PRESENTED)

            first = next_visible_index(self._questions, -1, state.answers)
            if first is None:
                raise EngineInvariantError("catalog has no visible question")
            await self._ask(state, scheduler, first)
        except CancellationSignal:
            logger.debug("Sessão encerrada durante apresentação")
        except EngineInvariantError as e:
            self._abort(e)

    async def open(self, subject_id: str, respondent: Respondent) -> SessionState:
        """Abre a sessão e aguarda até a primeira pergunta estar disponível."""
        state = self.start(subject_id, respondent)
        await self.run()
        return state

    def close(self) -> None:
        """Encerra a sessão: cancela timers e descarta o estado."""
        if self._scheduler is not None:
            self._scheduler.cancel()
        if self._state is not None:
            logger.info(
                "Sessão de avaliação encerrada",
                extra={
                    "session_id": short_id(self._state.session_id),
                    "phase": self._state.phase,
                },
            )
        self._state = None
        self._context = None
        self._respondent = None
        self._scheduler = None

    # ------------------------------------------------------------------
    # Transições
    # ------------------------------------------------------------------

    async def commit(self, value: AnswerValue, display_text: str) -> None:
        """Confirma a resposta da pergunta corrente (chamado pelo coletor)."""
        try:
            state, scheduler = self._state, self._scheduler
            question = self.current_question
            if (
                state is None
                or scheduler is None
                or question is None
                or state.phase != Phase.AWAITING_INPUT
            ):
                raise EngineInvariantError("commit without a current question")

            state.append_message(Origin.RESPONDENT, display_text, question_id=question.id)
            answers: AnswerRecord = dict(state.answers)
            if question.field_key is not None:
                answers[question.field_key] = value
            state.answers = answers
            self._transition(state, SessionEvent.ANSWER_COMMITTED)
            logger.info(
                "answer_committed",
                extra={
                    "session_id": short_id(state.session_id),
                    "question_id": question.id,
                    "kind": question.kind,
                },
            )

            if isinstance(question, ChoiceQuestion) and question.aborts_on is value:
                await self._decline(state, scheduler)
                return

            next_index = next_visible_index(self._questions, state.question_index, answers)
            if next_index is None:
                self._transition(state, SessionEvent.FLOW_COMPLETED)
                await self._finish(state, scheduler, answers)
                return

            await self._ask(state, scheduler, next_index)
        except CancellationSignal:
            logger.debug("Sessão encerrada durante transição")
        except EngineInvariantError as e:
            self._abort(e)

    async def _present_preamble(
        self,
        state: SessionState,
        scheduler: MessageScheduler,
        context: ContextSnapshot,
    ) -> None:
        subject = context.subject
        await scheduler.present(state, render_subject_summary(subject))
        for index, image in enumerate(subject.images, start=1):
            await scheduler.post(
                state,
                render_attachment_caption(index, image),
                attachment_ref=image.url,
            )
        state.preamble_length = len(state.transcript)

    async def _ask(self, state: SessionState, scheduler: MessageScheduler, index: int) -> None:
        self._ensure_owned(state)
        question = self._questions[index]
        prompt = self.prompt_context()
        if prompt is None:
            raise EngineInvariantError("question presented without context")

        # seleção obrigatória sem opções nunca poderia ser respondida
        if (
            isinstance(question, SelectQuestion)
            and question.required
            and not question.options_resolver(prompt)
        ):
            logger.warning(
                "select_without_options",
                extra={"session_id": short_id(state.session_id), "question_id": question.id},
            )
            await self._fail(state, scheduler, SessionEvent.OPTIONS_UNAVAILABLE, NO_OPTIONS_TEXT)
            return

        state.advance_to(index)
        await scheduler.present(state, question.render(prompt), question_id=question.id)
        self._transition(state, SessionEvent.QUESTION_PRESENTED)

    async def _decline(self, state: SessionState, scheduler: MessageScheduler) -> None:
        await scheduler.present(state, DECLINED_TEXT)
        self._transition(state, SessionEvent.SESSION_DECLINED)
        self._emit_outcome(state)
        await scheduler.wait(self._settings.cancel_close_delay_seconds)
        self.close()

    async def _finish(
        self,
        state: SessionState,
        scheduler: MessageScheduler,
        answers: AnswerRecord,
    ) -> None:
        """Compõe e envia usando `answers` recebido, não `state.answers`."""
        await scheduler.present(state, PROCESSING_TEXT)

        context, respondent = self._context, self._respondent
        if context is None or respondent is None:
            raise EngineInvariantError("composition without context")

        try:
            payload = self._composer.compose(answers, context, respondent.scope_key)
        except CompositionError as e:
            logger.warning(
                "composition_failed",
                extra={"session_id": short_id(state.session_id), "reason": str(e)},
            )
            await self._fail(state, scheduler, SessionEvent.COMPOSITION_FAILED, str(e))
            return

        self._transition(state, SessionEvent.PAYLOAD_COMPOSED)
        try:
            result = await self._composer.submit(state.subject_id, payload)
        except BackendError as e:
            if scheduler.token.cancelled:
                logger.info("submission_result_discarded", extra={"success": False})
                return
            await self._fail(state, scheduler, SessionEvent.SUBMISSION_FAILED, str(e))
            return

        if scheduler.token.cancelled:
            logger.info("submission_result_discarded", extra={"success": True})
            return

        self._notify(NotificationKind.SUCCESS, SUCCESS_NOTIFICATION)
        await scheduler.present(state, SUCCESS_TEXT)
        self._transition(state, SessionEvent.SUBMISSION_SUCCEEDED)
        self._emit_outcome(state, subject=result.subject)
        await scheduler.wait(self._settings.success_close_delay_seconds)
        self.close()

    async def _fail(
        self,
        state: SessionState,
        scheduler: MessageScheduler,
        event: SessionEvent,
        reason: str,
    ) -> None:
        """Falha terminal: notificação + mensagem; sessão segue aberta."""
        scheduler.token.raise_if_cancelled()
        self._notify(NotificationKind.ERROR, reason)
        await scheduler.present(state, FAILURE_TEXT)
        self._transition(state, event)
        self._emit_outcome(state, message=reason)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ensure_owned(self, state: SessionState) -> None:
        if state is not self._state:
            raise CancellationSignal()

    def _transition(self, state: SessionState, event: SessionEvent) -> None:
        self._ensure_owned(state)
        result = self._engine.dispatch(state.phase, event)
        if not result.valid or result.next_phase is None:
            raise EngineInvariantError(result.error or f"invalid transition on {event}")
        state.phase = result.next_phase

    def _notify(self, kind: NotificationKind, text: str) -> None:
        try:
            self._notifier.notify(kind, text)
        except Exception as e:  # pragma: no cover - notificação é fire-and-forget
            logger.warning("notification_failed", extra={"error": type(e).__name__})

    def _emit_outcome(
        self,
        state: SessionState,
        message: str | None = None,
        subject: SubjectDetail | None = None,
    ) -> None:
        outcome = SessionOutcome(
            session_id=state.session_id,
            subject_id=state.subject_id,
            phase=state.phase,
            message=message,
            subject=subject,
        )
        logger.info(
            "session_outcome",
            extra={"session_id": short_id(state.session_id), "phase": state.phase},
        )
        for callback in list(self._outcome_callbacks):
            try:
                callback(outcome)
            except Exception as e:
                logger.warning("outcome_callback_failed", extra={"error": type(e).__name__})

    def _abort(self, error: EngineInvariantError) -> None:
        state = self._state
        logger.error(
            "engine_invariant_violation",
            extra={
                "session_id": short_id(state.session_id) if state else None,
                "error": str(error),
            },
        )
        self.close()

