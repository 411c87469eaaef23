"""Tabela de transições do FSM de avaliação.

- TRANSITIONS[(current_phase, event)] = next_phase
- Fases terminais não aparecem como origem
- Validação pura: sem side effects
"""

from __future__ import annotations

from avaliacao_desvios.domain.session.events import SessionEvent
from avaliacao_desvios.domain.session.states import TERMINAL_PHASES, Phase

TRANSITIONS: dict[tuple[Phase, SessionEvent], Phase] = {
    # === GREETING → ... ===
    (Phase.GREETING, SessionEvent.PREAMBLE_PRESENTED): Phase.PRESENTING,
    (Phase.GREETING, SessionEvent.CONTEXT_LOAD_FAILED): Phase.FAILED,
    # === PRESENTING → ... ===
    (Phase.PRESENTING, SessionEvent.QUESTION_PRESENTED): Phase.AWAITING_INPUT,
    (Phase.PRESENTING, SessionEvent.SESSION_DECLINED): Phase.CANCELLED,
    (Phase.PRESENTING, SessionEvent.FLOW_COMPLETED): Phase.COMPOSING,
    (Phase.PRESENTING, SessionEvent.OPTIONS_UNAVAILABLE): Phase.FAILED,
    # === AWAITING_INPUT → ... ===
    (Phase.AWAITING_INPUT, SessionEvent.ANSWER_COMMITTED): Phase.PRESENTING,
    # === COMPOSING → ... ===
    (Phase.COMPOSING, SessionEvent.PAYLOAD_COMPOSED): Phase.SUBMITTING,
    (Phase.COMPOSING, SessionEvent.COMPOSITION_FAILED): Phase.FAILED,
    # === SUBMITTING → ... ===
    (Phase.SUBMITTING, SessionEvent.SUBMISSION_SUCCEEDED): Phase.SUCCEEDED,
    (Phase.SUBMITTING, SessionEvent.SUBMISSION_FAILED): Phase.FAILED,
    # === Fases terminais: SEM transições de saída ===
}


def validate_transition(
    current_phase: Phase, event: SessionEvent
) -> tuple[bool, Phase | None, str]:
    """Valida se uma transição é permitida.

    Retorna:
    - (True, next_phase, ""): transição válida
    - (False, None, motivo): transição inválida

    Nunca lança exceção; apenas valida.
    """
    key = (current_phase, event)

    if current_phase in TERMINAL_PHASES:
        return (
            False,
            None,
            f"Terminal phase {current_phase} has no transitions",
        )

    if key not in TRANSITIONS:
        return (
            False,
            None,
            f"No transition from {current_phase} on event {event}",
        )

    return True, TRANSITIONS[key], ""
