"""Cliente HTTP da API de desvios.

A API expõe dois tipos de chamada, tratados de forma diferente:
- Leituras (GET do desvio, potenciais e usuários): idempotentes; retry com
  backoff exponencial em 429, 5xx, timeout e falha de conexão
- Mutação (PUT /avaliar): tentativa única. O backend recusa um segundo envio
  para o mesmo desvio, então uma falha nunca é reenviada

Regras:
- Nunca logar payloads ou o bearer token
- Sempre usar timeout
- Mensagem de erro do servidor (`message`) preservada em HttpError.detail
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from avaliacao_desvios.observability.logging import get_logger

if TYPE_CHECKING:
    from avaliacao_desvios.config.settings import Settings

logger: logging.Logger = get_logger(__name__)

_TOKEN_PATTERN = re.compile(r"(access_token|token)=[^&]+")


def _sanitize_url(url: str) -> str:
    """Mascara tokens em query string antes de logar."""
    return _TOKEN_PATTERN.sub(r"\1=***", url)


@dataclass
class HttpClientConfig:
    """Configuração do cliente; `read_retries` vale apenas para GET."""

    base_url: str = ""
    timeout_seconds: float = 30.0
    read_retries: int = 3
    backoff_base_seconds: float = 2.0
    backoff_max_seconds: float = 30.0
    default_headers: dict[str, str] = field(default_factory=dict)
    verify_ssl: bool = True


class HttpError(Exception):
    """Falha de chamada ao backend.

    `is_retryable` indica falha transitória (só aproveitada em leituras);
    `detail` carrega o `message` do corpo de erro, quando houver.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        is_retryable: bool = False,
        detail: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.is_retryable = is_retryable
        self.detail = detail


def _is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


def _calculate_backoff(attempt: int, base_seconds: float, max_seconds: float) -> float:
    """Espera antes da tentativa `attempt + 2` (exponencial, com teto)."""
    return min(base_seconds * 2**attempt, max_seconds)


def _extract_detail(response: httpx.Response) -> str | None:
    """Lê `message` do corpo JSON de erro; None se ausente ou inválido."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return None


def _error_from_response(response: httpx.Response) -> HttpError:
    return HttpError(
        f"HTTP {response.status_code}",
        status_code=response.status_code,
        is_retryable=_is_retryable_status(response.status_code),
        detail=_extract_detail(response),
    )


class HttpClient:
    """Cliente assíncrono da API de desvios.

    Uso típico:
        client = HttpClient(config)
        subject = await client.get("/api/desvios/123")   # com retry
        await client.put("/api/desvios/123/avaliar", json=body)  # uma vez
        await client.close()
    """

    def __init__(
        self,
        config: HttpClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or HttpClientConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=httpx.Timeout(self._config.timeout_seconds),
                headers=self._config.default_headers,
                verify=self._config.verify_ssl,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Fecha a conexão (chamado no shutdown da aplicação)."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def _send_once(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Uma única tentativa; qualquer falha de rede ou status vira HttpError."""
        try:
            response = await self._get_client().request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning(
                "backend_timeout", extra={"method": method, "url": _sanitize_url(url)}
            )
            raise HttpError("Timeout", is_retryable=True) from exc
        except httpx.TransportError as exc:
            logger.warning(
                "backend_unreachable",
                extra={
                    "method": method,
                    "url": _sanitize_url(url),
                    "error_type": type(exc).__name__,
                },
            )
            raise HttpError("Erro de conexão", is_retryable=True) from exc

        log_extra = {
            "method": method,
            "url": _sanitize_url(url),
            "status_code": response.status_code,
        }
        if response.is_success:
            logger.debug("backend_response", extra=log_extra)
            return response

        error = _error_from_response(response)
        logger.warning(
            "backend_error_response",
            extra={**log_extra, "retryable": error.is_retryable},
        )
        raise error

    async def get(self, url: str, params: dict[str, Any] | None = None) -> httpx.Response:
        """Leitura idempotente: repete falhas transitórias com backoff.

        Raises:
            HttpError: falha não transitória, ou transitória após esgotar
                `read_retries`.
        """
        cfg = self._config
        attempt = 0
        while True:
            try:
                return await self._send_once("GET", url, params=params)
            except HttpError as error:
                if not error.is_retryable or attempt >= cfg.read_retries:
                    if error.is_retryable:
                        logger.error(
                            "backend_read_retries_exhausted",
                            extra={"url": _sanitize_url(url), "attempts": attempt + 1},
                        )
                    raise

            backoff = _calculate_backoff(
                attempt, cfg.backoff_base_seconds, cfg.backoff_max_seconds
            )
            attempt += 1
            logger.info(
                "backend_read_retry",
                extra={
                    "url": _sanitize_url(url),
                    "next_attempt": attempt + 1,
                    "backoff_seconds": backoff,
                },
            )
            await asyncio.sleep(backoff)

    async def put(self, url: str, json: dict[str, Any] | None = None) -> httpx.Response:
        """Mutação: tentativa única, sem retry em nenhum tipo de falha."""
        return await self._send_once("PUT", url, json=json)


def create_http_client(settings: Settings | None = None) -> HttpClient:
    """Cria o cliente da API de desvios a partir das configurações.

    Args:
        settings: Configurações da aplicação. Se None, usa get_settings()
    """
    if settings is None:
        from avaliacao_desvios.config.settings import get_settings

        settings = get_settings()

    headers = {"User-Agent": f"{settings.service_name}/{settings.version}"}
    if settings.backend_api_token:
        headers["Authorization"] = f"Bearer {settings.backend_api_token}"

    config = HttpClientConfig(
        base_url=settings.backend_api_base_url or "",
        timeout_seconds=float(settings.backend_request_timeout_seconds),
        read_retries=settings.backend_max_retries,
        backoff_base_seconds=float(settings.backend_retry_backoff_seconds),
        default_headers=headers,
        verify_ssl=settings.is_production or settings.is_staging,
    )

    logger.info(
        "Cliente HTTP criado",
        extra={
            "timeout_seconds": config.timeout_seconds,
            "read_retries": config.read_retries,
        },
    )

    return HttpClient(config)
