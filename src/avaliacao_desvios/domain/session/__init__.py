"""FSM da sessão de avaliação — fases, eventos e transições.

Exporta:
- Phase: 8 fases canônicas
- SessionEvent: eventos do fluxo
- validate_transition: validador puro
"""

from avaliacao_desvios.domain.session.events import SessionEvent
from avaliacao_desvios.domain.session.states import (
    NON_TERMINAL_PHASES,
    TERMINAL_PHASES,
    Phase,
)
from avaliacao_desvios.domain.session.transitions import validate_transition

__all__ = [
    "Phase",
    "SessionEvent",
    "validate_transition",
    "TERMINAL_PHASES",
    "NON_TERMINAL_PHASES",
]
