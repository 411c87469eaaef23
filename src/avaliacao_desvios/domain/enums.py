"""Enums de domínio para perguntas, mensagens e notificações."""

from __future__ import annotations

from enum import StrEnum


class InputKind(StrEnum):
    """Tipos de entrada suportados pelo coletor de respostas."""

    CHOICE = "choice"
    TEXT = "text"
    LONG_TEXT = "long_text"
    SELECT = "select"


class FieldKey(StrEnum):
    """Campos da avaliação preenchidos pelas respostas."""

    START_ASSESSMENT = "iniciar_avaliacao"
    AGREES_WITH_CLASSIFICATION = "concorda_potencial"
    REPLACEMENT_CLASSIFICATION = "novo_potencial"
    CLIENT_RESPONSIBILITY = "acao_cliente"
    RESPONSIBLE = "responsavel"
    ACTION = "acao"


class Origin(StrEnum):
    """Autor de uma mensagem do transcript."""

    SYSTEM = "system"
    RESPONDENT = "respondent"


class NotificationKind(StrEnum):
    """Tipos de notificação transitória exibidos pelo host."""

    SUCCESS = "success"
    ERROR = "error"
