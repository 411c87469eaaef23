"""Eventos que disparam transições de fase no FSM da avaliação."""

from __future__ import annotations

from enum import StrEnum


class SessionEvent(StrEnum):
    """Eventos canônicos do fluxo de avaliação."""

    # === Abertura ===
    PREAMBLE_PRESENTED = "PREAMBLE_PRESENTED"
    """Resumo do desvio (e imagens) apresentado."""

    CONTEXT_LOAD_FAILED = "CONTEXT_LOAD_FAILED"
    """Desvio não pôde ser carregado."""

    # === Conversa ===
    QUESTION_PRESENTED = "QUESTION_PRESENTED"
    """Pergunta corrente terminou de ser revelada."""

    ANSWER_COMMITTED = "ANSWER_COMMITTED"
    """Coletor confirmou uma resposta válida."""

    SESSION_DECLINED = "SESSION_DECLINED"
    """Avaliador recusou iniciar; mensagem de cancelamento apresentada."""

    FLOW_COMPLETED = "FLOW_COMPLETED"
    """Não há mais perguntas visíveis."""

    OPTIONS_UNAVAILABLE = "OPTIONS_UNAVAILABLE"
    """Seleção obrigatória sem nenhuma opção no escopo do avaliador."""

    # === Finalização ===
    PAYLOAD_COMPOSED = "PAYLOAD_COMPOSED"
    """Payload montado e validado."""

    COMPOSITION_FAILED = "COMPOSITION_FAILED"
    """Payload incompleto; nenhuma chamada de rede feita."""

    SUBMISSION_SUCCEEDED = "SUBMISSION_SUCCEEDED"
    """Gateway confirmou a avaliação."""

    SUBMISSION_FAILED = "SUBMISSION_FAILED"
    """Gateway recusou ou lançou exceção."""
