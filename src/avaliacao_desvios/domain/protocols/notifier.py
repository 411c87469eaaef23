"""Protocolo de domínio para notificações transitórias (fire-and-forget)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from avaliacao_desvios.domain.enums import NotificationKind


class NotifierProtocol(ABC):
    """Superfície de notificação do host (toast)."""

    @abstractmethod
    def notify(self, kind: NotificationKind, text: str) -> None: ...
