"""Testes do FSM da sessão de avaliação.

Cobertura:
- Transições válidas do caminho feliz e dos desvios
- Fases terminais (sem transições de saída)
- Eventos inválidos
"""

import pytest

from avaliacao_desvios.application.fsm_engine import FSMDispatchResult, FSMEngine
from avaliacao_desvios.domain.session.events import SessionEvent
from avaliacao_desvios.domain.session.states import (
    NON_TERMINAL_PHASES,
    TERMINAL_PHASES,
    Phase,
)
from avaliacao_desvios.domain.session.transitions import TRANSITIONS, validate_transition


class TestFSMEngineBasic:
    """Transições do fluxo de avaliação."""

    @pytest.fixture
    def engine(self) -> FSMEngine:
        return FSMEngine()

    def test_greeting_to_presenting_on_preamble(self, engine: FSMEngine) -> None:
        """GREETING + PREAMBLE_PRESENTED → PRESENTING."""
        result = engine.dispatch(Phase.GREETING, SessionEvent.PREAMBLE_PRESENTED)
        assert result.valid is True
        assert result.next_phase == Phase.PRESENTING

    def test_presenting_to_awaiting_input(self, engine: FSMEngine) -> None:
        """PRESENTING + QUESTION_PRESENTED → AWAITING_INPUT."""
        result = engine.dispatch(Phase.PRESENTING, SessionEvent.QUESTION_PRESENTED)
        assert result.next_phase == Phase.AWAITING_INPUT

    def test_awaiting_input_to_presenting_on_commit(self, engine: FSMEngine) -> None:
        """AWAITING_INPUT + ANSWER_COMMITTED → PRESENTING."""
        result = engine.dispatch(Phase.AWAITING_INPUT, SessionEvent.ANSWER_COMMITTED)
        assert result.next_phase == Phase.PRESENTING

    def test_decline_is_terminal(self, engine: FSMEngine) -> None:
        """PRESENTING + SESSION_DECLINED → CANCELLED (terminal)."""
        result = engine.dispatch(Phase.PRESENTING, SessionEvent.SESSION_DECLINED)
        assert result.next_phase == Phase.CANCELLED
        assert result.is_terminal() is True

    def test_finalization_path(self, engine: FSMEngine) -> None:
        """PRESENTING → COMPOSING → SUBMITTING → SUCCEEDED."""
        phase = Phase.PRESENTING
        for event in (
            SessionEvent.FLOW_COMPLETED,
            SessionEvent.PAYLOAD_COMPOSED,
            SessionEvent.SUBMISSION_SUCCEEDED,
        ):
            result = engine.dispatch(phase, event)
            assert result.valid is True
            phase = result.next_phase
        assert phase == Phase.SUCCEEDED

    @pytest.mark.parametrize(
        ("phase", "event"),
        [
            (Phase.GREETING, SessionEvent.CONTEXT_LOAD_FAILED),
            (Phase.PRESENTING, SessionEvent.OPTIONS_UNAVAILABLE),
            (Phase.COMPOSING, SessionEvent.COMPOSITION_FAILED),
            (Phase.SUBMITTING, SessionEvent.SUBMISSION_FAILED),
        ],
    )
    def test_failures_lead_to_failed(
        self, engine: FSMEngine, phase: Phase, event: SessionEvent
    ) -> None:
        """Toda falha leva a FAILED."""
        assert engine.dispatch(phase, event).next_phase == Phase.FAILED


class TestInvalidTransitions:
    """Eventos fora de ordem nunca produzem fase."""

    def test_commit_while_presenting_is_invalid(self) -> None:
        """Commit durante revelação não tem transição."""
        result = FSMEngine().dispatch(Phase.PRESENTING, SessionEvent.ANSWER_COMMITTED)
        assert result == FSMDispatchResult(next_phase=None, valid=False, error=result.error)
        assert "No transition" in (result.error or "")

    @pytest.mark.parametrize("phase", sorted(TERMINAL_PHASES))
    def test_terminal_phases_have_no_transitions(self, phase: Phase) -> None:
        """Fases terminais não aceitam nenhum evento."""
        for event in SessionEvent:
            valid, next_phase, error = validate_transition(phase, event)
            assert valid is False
            assert next_phase is None
            assert "Terminal phase" in error

    def test_terminal_phases_never_appear_as_source(self) -> None:
        """Tabela não contém origens terminais."""
        assert all(phase in NON_TERMINAL_PHASES for phase, _ in TRANSITIONS)

    def test_every_non_terminal_phase_has_an_exit(self) -> None:
        """Nenhuma fase não terminal é beco sem saída."""
        sources = {phase for phase, _ in TRANSITIONS}
        assert sources == set(NON_TERMINAL_PHASES)
