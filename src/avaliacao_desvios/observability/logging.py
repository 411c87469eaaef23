"""Configuração de logging estruturado (JSON)."""

from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter

from avaliacao_desvios.observability.middleware import get_correlation_id, get_session_id
from avaliacao_desvios.utils.ids import short_id

_TEXT_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s [%(correlation_id)s] [%(session_id)s] %(message)s"
)


class CorrelationIdFilter(logging.Filter):
    """Insere correlation_id, session_id (abreviado) e service no record de log.

    `extra` explícito tem precedência sobre o contexto da requisição.
    Importante: nunca adicionar textos de resposta do avaliador nos logs.
    """

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self._service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        correlation_id = getattr(record, "correlation_id", None)
        record.correlation_id = correlation_id if correlation_id else get_correlation_id()
        session_id = getattr(record, "session_id", None)
        record.session_id = session_id if session_id else short_id(get_session_id()) or ""
        record.service = self._service_name
        return True


def configure_logging(level: str, service_name: str, log_format: str = "json") -> None:
    """Configura logging com campos padrão do serviço (json | text)."""

    formatter: logging.Formatter
    if log_format.lower() == "text":
        formatter = logging.Formatter(_TEXT_FORMAT)
    else:
        formatter = JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s "
            "%(correlation_id)s %(session_id)s %(service)s",
            rename_fields={"levelname": "level", "name": "logger"},
        )

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter(service_name))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]


def get_logger(name: str) -> logging.Logger:
    """Retorna logger simples; o filtro injeta service/correlation_id."""

    return logging.getLogger(name)


def log_fallback(
    logger: logging.Logger,
    component: str,
    reason: str | None = None,
    elapsed_ms: float | None = None,
) -> None:
    """Log observável de fallback usado (sem PII).

    Args:
        logger: Logger instance
        component: Nome do componente (ex: "classification_catalog")
        reason: Razão do fallback (ex: "HttpError") — sem PII
        elapsed_ms: Tempo decorrido em ms (quando aplicável)
    """
    extra: dict[str, object] = {
        "fallback_used": True,
        "component": component,
    }
    if reason:
        extra["reason"] = reason
    if elapsed_ms is not None:
        extra["elapsed_ms"] = elapsed_ms

    logger.info(
        f"Fallback applied for {component}",
        extra=extra,
    )
