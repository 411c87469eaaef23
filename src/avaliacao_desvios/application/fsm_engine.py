"""Engine FSM puro — dispatcher determinístico sem side effects.

- Puro: entrada → output sem modificar estado externo
- Testável: resultado é determinístico dado entrada
- Auditável: logs estruturados sem PII
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from avaliacao_desvios.domain.session.events import SessionEvent
from avaliacao_desvios.domain.session.states import TERMINAL_PHASES, Phase
from avaliacao_desvios.domain.session.transitions import validate_transition
from avaliacao_desvios.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


@dataclass(slots=True)
class FSMDispatchResult:
    """Resultado da execução do dispatcher FSM."""

    next_phase: Phase | None = None
    valid: bool = False
    error: str | None = None

    def is_terminal(self) -> bool:
        """True se next_phase é terminal."""
        return self.next_phase in TERMINAL_PHASES if self.next_phase else False


class FSMEngine:
    """Engine FSM — dispatcher puro e determinístico."""

    def dispatch(self, current_phase: Phase, event: SessionEvent) -> FSMDispatchResult:
        """Executa transição FSM.

        Contrato:
        - Nunca lança exceção
        - Sempre retorna FSMDispatchResult
        - Output é determinístico
        """
        is_valid, next_phase, error = validate_transition(current_phase, event)

        if not is_valid:
            logger.debug(
                "FSM transition invalid",
                extra={
                    "current_phase": current_phase,
                    "event": event,
                    "error": error,
                },
            )
            return FSMDispatchResult(next_phase=None, valid=False, error=error)

        logger.debug(
            "FSM transition valid",
            extra={
                "current_phase": current_phase,
                "event": event,
                "next_phase": next_phase,
            },
        )
        return FSMDispatchResult(next_phase=next_phase, valid=True, error=None)
