"""Fases canônicas de uma sessão de avaliação.

- Toda sessão termina em exatamente 1 fase terminal
- Enquanto não terminal, apenas uma de PRESENTING/AWAITING_INPUT está ativa
  depois da saudação
- Transições são explícitas (FSM)
"""

from __future__ import annotations

from enum import StrEnum


class Phase(StrEnum):
    """8 fases de uma sessão de avaliação conversacional."""

    # === Entrada ===
    GREETING = "GREETING"
    """Contexto sendo carregado e resumo do desvio sendo apresentado."""

    # === Conversa ===
    PRESENTING = "PRESENTING"
    """Mensagem do assistente em revelação; entrada bloqueada."""

    AWAITING_INPUT = "AWAITING_INPUT"
    """Pergunta apresentada; aguardando commit do coletor."""

    # === Finalização ===
    COMPOSING = "COMPOSING"
    """Montando o payload a partir das respostas finais."""

    SUBMITTING = "SUBMITTING"
    """Payload enviado ao gateway; aguardando resultado."""

    # === Terminais ===
    CANCELLED = "CANCELLED"
    """Avaliador recusou iniciar a avaliação."""

    SUCCEEDED = "SUCCEEDED"
    """Avaliação aceita pelo backend."""

    FAILED = "FAILED"
    """Falha de composição, backend ou carregamento de contexto."""


TERMINAL_PHASES = frozenset({
    Phase.CANCELLED,
    Phase.SUCCEEDED,
    Phase.FAILED,
})
"""Fases que encerram a sessão (sem transições posteriores)."""

NON_TERMINAL_PHASES = frozenset({
    p for p in Phase if p not in TERMINAL_PHASES
})
"""Fases que permitem transições posteriores."""
