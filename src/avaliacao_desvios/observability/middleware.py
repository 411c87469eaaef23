"""Middleware HTTP: correlação e sessão de avaliação no contexto de log.

- `x-correlation-id` recebido é propagado (ou gerado) e devolvido na resposta
- Rotas `/avaliacoes/{session_id}/...` vinculam o session_id ao contexto, de
  modo que todo log da requisição (inclusive background tasks) traga a sessão
- Cada requisição gera um log `http_request` com rota, status e latência
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from contextvars import ContextVar, Token

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from avaliacao_desvios.utils.ids import short_id

# get_logger vive em observability.logging, que importa este módulo
logger = logging.getLogger(__name__)

CORRELATION_HEADER = "x-correlation-id"
_SESSION_ROUTE = re.compile(r"^/avaliacoes/(?P<session_id>[^/]+)")

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")
_session_id: ContextVar[str] = ContextVar("session_id", default="")


def get_correlation_id() -> str:
    """Retorna o correlation_id corrente (ou vazio)."""
    return _correlation_id.get()


def get_session_id() -> str:
    """Retorna o session_id de avaliação vinculado à requisição (ou vazio)."""
    return _session_id.get()


def bind_session_id(session_id: str) -> Token[str]:
    """Vincula uma sessão recém-criada (POST /avaliacoes) ao contexto corrente."""
    return _session_id.set(session_id)


def _route_template(path: str) -> str:
    """Troca o session_id do path por placeholder (ids completos não vão para log)."""
    return _SESSION_ROUTE.sub("/avaliacoes/{session_id}", path)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Vincula correlation_id e session_id a cada request e loga o resultado."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        match = _SESSION_ROUTE.match(request.url.path)
        session_id = match["session_id"] if match else ""

        correlation_token = _correlation_id.set(correlation_id)
        session_token = _session_id.set(session_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            logger.info(
                "http_request",
                extra={
                    "method": request.method,
                    "route": _route_template(request.url.path),
                    "status_code": response.status_code,
                    "elapsed_ms": round((time.perf_counter() - started) * 1000, 2),
                    "correlation_id": correlation_id,
                    "session_id": short_id(session_id),
                },
            )
        finally:
            _session_id.reset(session_token)
            _correlation_id.reset(correlation_token)

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
