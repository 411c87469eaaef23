"""Context manager para instrumentação de latência."""

from __future__ import annotations

import contextlib
import time
from collections.abc import Generator

from avaliacao_desvios.observability.logging import get_logger

logger = get_logger(__name__)


@contextlib.contextmanager
def timed(component: str, **fields: object) -> Generator[None, None, None]:
    """Mede e loga o tempo decorrido de um componente.

    Uso:
        with timed("context_load", session_id="abc..."):
            await carregar()

    Loga `component_latency` com:
        - component: nome do componente medido
        - elapsed_ms: milissegundos decorridos
        - campos extras informados (sem PII)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "component_latency",
            extra={
                **fields,
                "component": component,
                "elapsed_ms": round(elapsed_ms, 2),
            },
        )
