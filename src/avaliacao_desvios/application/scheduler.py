"""Agendador de apresentação de mensagens (digitação simulada).

Uma mensagem por vez: o texto é revelado caractere a caractere com intervalo
fixo e, ao final, aguarda-se uma pausa fixa antes de liberar a próxima etapa.
Todas as suspensões verificam o CancellationToken da sessão; após `cancel()`
nenhuma mutação adicional do SessionState acontece.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from avaliacao_desvios.application.session.models import SessionState
from avaliacao_desvios.domain.enums import Origin
from avaliacao_desvios.domain.errors import CancellationSignal
from avaliacao_desvios.domain.models import Message
from avaliacao_desvios.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class CancellationToken:
    """Token de cancelamento compartilhado por todas as suspensões da sessão."""

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise CancellationSignal()


class MessageScheduler:
    """Apresenta mensagens do assistente de forma temporizada e cancelável."""

    def __init__(
        self,
        typing_interval: float,
        pause: float,
        token: CancellationToken | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._typing_interval = typing_interval
        self._pause = pause
        self._token = token or CancellationToken()
        self._sleep = sleep
        self._lock = asyncio.Lock()

    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def cancel(self) -> None:
        """Invalida a apresentação corrente e todas as enfileiradas."""
        if not self._token.cancelled:
            logger.debug("scheduler_cancelled")
        self._token.cancel()

    async def wait(self, seconds: float) -> None:
        """Suspensão cancelável (usada também pelo controller)."""
        self._token.raise_if_cancelled()
        await self._sleep(seconds)
        self._token.raise_if_cancelled()

    async def present(
        self,
        session: SessionState,
        text: str,
        *,
        question_id: str | None = None,
    ) -> Message:
        """Revela `text` no transcript e resolve após a pausa fixa.

        Raises:
            CancellationSignal: sessão encerrada durante a apresentação.
        """
        async with self._lock:
            self._token.raise_if_cancelled()
            message = session.append_message(
                Origin.SYSTEM, "", revealing=True, question_id=question_id
            )

            for end in range(1, len(text) + 1):
                await self.wait(self._typing_interval)
                session.reveal(message.id, text[:end])

            session.finish_reveal(message.id)
            await self.wait(self._pause)
            return message

    async def post(
        self,
        session: SessionState,
        text: str,
        *,
        attachment_ref: str | None = None,
    ) -> Message:
        """Anexa mensagem completa sem digitação (ex.: imagens do desvio)."""
        async with self._lock:
            self._token.raise_if_cancelled()
            return session.append_message(Origin.SYSTEM, text, attachment_ref=attachment_ref)
