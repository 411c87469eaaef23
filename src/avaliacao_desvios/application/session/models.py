"""Models de sessão — SessionState.

SessionState é a unidade de uma conversa de avaliação.
- Uma sessão = um session_id único, um desvio
- Uma sessão = exatamente uma fase terminal
- Transcript é append-only; somente a mensagem em revelação muda de conteúdo
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from avaliacao_desvios.domain.enums import FieldKey, Origin
from avaliacao_desvios.domain.errors import EngineInvariantError
from avaliacao_desvios.domain.models import Message
from avaliacao_desvios.domain.session.states import TERMINAL_PHASES, Phase


class SessionState(BaseModel):
    """Estado completo da conversa de avaliação.

    Responsabilidades:
    - Guardar índice da pergunta corrente e respostas confirmadas
    - Manter o transcript (contador de ids por sessão, nunca global)
    - Registrar a fase corrente do FSM
    """

    session_id: str
    subject_id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    phase: Phase = Phase.GREETING
    question_index: int = -1
    answers: dict[FieldKey, bool | str] = Field(default_factory=dict)
    transcript: list[Message] = Field(default_factory=list)
    next_message_id: int = 0
    preamble_length: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def append_message(
        self,
        origin: Origin,
        content: str,
        *,
        revealing: bool = False,
        attachment_ref: str | None = None,
        question_id: str | None = None,
    ) -> Message:
        """Anexa mensagem ao final do transcript com id monotônico da sessão."""
        if self.transcript and self.transcript[-1].revealing:
            raise EngineInvariantError("append while another message is revealing")

        message = Message(
            id=self.next_message_id,
            origin=origin,
            content=content,
            attachment_ref=attachment_ref,
            question_id=question_id,
            revealing=revealing,
        )
        self.next_message_id += 1
        self.transcript.append(message)
        return message

    def reveal(self, message_id: int, content: str) -> None:
        """Atualiza o conteúdo da mensagem em revelação (apenas a última)."""
        message = self._revealing_message(message_id)
        message.content = content

    def finish_reveal(self, message_id: int) -> None:
        """Congela a mensagem; depois disso o conteúdo não muda mais."""
        message = self._revealing_message(message_id)
        message.revealing = False

    def advance_to(self, index: int) -> None:
        """Move o índice da pergunta corrente (nunca para trás)."""
        if index < self.question_index:
            raise EngineInvariantError(
                f"question_index cannot move backwards ({self.question_index} -> {index})"
            )
        self.question_index = index

    def _revealing_message(self, message_id: int) -> Message:
        if not self.transcript:
            raise EngineInvariantError("empty transcript")
        message = self.transcript[-1]
        if message.id != message_id or not message.revealing:
            raise EngineInvariantError(f"message {message_id} is not being revealed")
        return message
