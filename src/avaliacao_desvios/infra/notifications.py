"""Notificador transitório (toast do host)."""

from __future__ import annotations

import logging

from avaliacao_desvios.domain.enums import NotificationKind
from avaliacao_desvios.domain.models import Notification
from avaliacao_desvios.domain.protocols import NotifierProtocol
from avaliacao_desvios.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class RecordingNotifier(NotifierProtocol):
    """Guarda as notificações para exibição posterior (API) ou asserção (testes).

    Cada notificação também vira log estruturado (apenas o tipo; o texto de
    erro pode repetir mensagem do backend).
    """

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def notify(self, kind: NotificationKind, text: str) -> None:
        self.notifications.append(Notification(kind=kind, text=text))
        level = logging.INFO if kind == NotificationKind.SUCCESS else logging.WARNING
        logger.log(level, "notification", extra={"kind": kind})
