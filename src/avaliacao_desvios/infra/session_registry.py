"""Registro em memória das sessões de avaliação abertas pela API."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from avaliacao_desvios.application.collector import AnswerCollector
from avaliacao_desvios.application.controller import AssessmentFlowController, SessionOutcome
from avaliacao_desvios.application.session import SessionState
from avaliacao_desvios.infra.notifications import RecordingNotifier
from avaliacao_desvios.observability.logging import get_logger
from avaliacao_desvios.utils.ids import short_id

logger: logging.Logger = get_logger(__name__)


@dataclass
class AssessmentSession:
    """Controller + coletor de uma conversa, com o último estado conhecido.

    `state` continua legível depois que o controller fecha a sessão.
    """

    controller: AssessmentFlowController
    collector: AnswerCollector
    notifier: RecordingNotifier
    state: SessionState
    outcome: SessionOutcome | None = None
    expire_at: float = field(default=0.0)

    @property
    def session_id(self) -> str:
        return self.state.session_id


class InMemorySessionRegistry:
    """Armazenamento em memória com TTL (uma instância por processo).

    Sessões expiradas são removidas (e seus controllers fechados) em qualquer
    save/load, não apenas quando o próprio id volta a ser consultado.
    """

    def __init__(self, ttl_seconds: int = 7200) -> None:
        self._ttl_seconds = ttl_seconds
        self._sessions: dict[str, AssessmentSession] = {}

    def _purge_expired(self, now: float) -> None:
        expired = [sid for sid, session in self._sessions.items() if now > session.expire_at]
        for session_id in expired:
            self._sessions.pop(session_id).controller.close()
        if expired:
            logger.debug("Expired sessions purged (in-memory)", extra={"count": len(expired)})

    def save(self, session: AssessmentSession) -> None:
        now = datetime.now(tz=UTC).timestamp()
        self._purge_expired(now)
        session.expire_at = now + self._ttl_seconds
        self._sessions[session.session_id] = session
        logger.debug(
            "Session saved (in-memory)",
            extra={"session_id": short_id(session.session_id), "ttl_seconds": self._ttl_seconds},
        )

    def load(self, session_id: str) -> AssessmentSession | None:
        self._purge_expired(datetime.now(tz=UTC).timestamp())
        session = self._sessions.get(session_id)
        if session is None:
            logger.debug("Session not found (in-memory)", extra={"session_id": short_id(session_id)})
        return session

    def delete(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.controller.close()
        logger.debug("Session deleted (in-memory)", extra={"session_id": short_id(session_id)})
        return True

    def __len__(self) -> int:
        return len(self._sessions)
