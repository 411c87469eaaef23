"""Taxonomia de erros do motor de avaliação.

- ValidationError: resposta não passa no predicado; fica no coletor.
- CompositionError: payload incompleto; falha antes de qualquer chamada de rede.
- BackendError: gateway de mutação recusou ou lançou exceção.
- ContextLoadError: desvio não pôde ser carregado na abertura.
- EngineInvariantError: violação interna; fatal para a sessão (reset).

CancellationSignal não é erro: indica sessão encerrada durante uma suspensão.
"""

from __future__ import annotations


class AssessmentError(Exception):
    """Base dos erros do motor de avaliação."""


class ValidationError(AssessmentError):
    """Resposta rejeitada pelo validador da pergunta."""


class CompositionError(AssessmentError):
    """Não foi possível montar o payload de avaliação."""


class BackendError(AssessmentError):
    """Falha reportada (ou lançada) pelo gateway de mutação."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ContextLoadError(AssessmentError):
    """Falha ao carregar o contexto da sessão."""


class EngineInvariantError(AssessmentError):
    """Estado interno inconsistente; a sessão deve ser descartada."""


class CancellationSignal(Exception):
    """Sessão encerrada; nenhuma mutação adicional é permitida."""
