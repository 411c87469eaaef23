"""Package `session` — estado da conversa de avaliação.

Exports principais:
- SessionState: modelo de estado da sessão (de session/models.py)
"""

from __future__ import annotations

from avaliacao_desvios.application.session.models import SessionState

__all__ = ["SessionState"]
