"""Testes unitários para infra/http.py.

Leituras com retry/backoff, mutação em tentativa única, timeout e logging.
"""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from avaliacao_desvios.config.settings import Settings
from avaliacao_desvios.infra.http import (
    HttpClient,
    HttpClientConfig,
    HttpError,
    _calculate_backoff,
    _is_retryable_status,
    _sanitize_url,
    create_http_client,
)

BASE_URL = "https://api.example.com"


def _scripted(*outcomes: httpx.Response | Exception) -> tuple[httpx.MockTransport, list[str]]:
    """Transport que devolve `outcomes` em ordem e registra os métodos chamados."""
    calls: list[str] = []
    pending = list(outcomes)

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.method)
        outcome = pending.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    return httpx.MockTransport(handler), calls


def _client(transport: httpx.MockTransport, read_retries: int = 3) -> HttpClient:
    return HttpClient(
        HttpClientConfig(base_url=BASE_URL, read_retries=read_retries),
        transport=transport,
    )


@pytest.fixture
def no_sleep() -> Iterator[AsyncMock]:
    with patch("asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep


class TestHelpers:
    """Funções puras do módulo."""

    def test_sanitize_url_removes_token(self) -> None:
        url = "https://api.example.com?token=secret123&other=value"
        sanitized = _sanitize_url(url)
        assert "secret123" not in sanitized
        assert "token=***" in sanitized
        assert "other=value" in sanitized

    def test_sanitize_url_preserves_clean_url(self) -> None:
        url = "https://api.example.com/api/desvios/1"
        assert _sanitize_url(url) == url

    def test_is_retryable_status(self) -> None:
        """429 e 5xx são transitórios; demais 4xx não."""
        assert _is_retryable_status(429) is True
        assert _is_retryable_status(503) is True
        assert _is_retryable_status(400) is False
        assert _is_retryable_status(404) is False

    def test_calculate_backoff(self) -> None:
        assert _calculate_backoff(0, 2.0, 30.0) == 2.0
        assert _calculate_backoff(2, 2.0, 30.0) == 8.0
        assert _calculate_backoff(5, 2.0, 10.0) == 10.0


class TestReads:
    """GET: retry com backoff apenas para falhas transitórias."""

    @pytest.mark.asyncio
    async def test_get_sends_params(self) -> None:
        seen: list[httpx.URL] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url)
            return httpx.Response(200, json={"users": []})

        client = _client(httpx.MockTransport(handler))
        await client.get("/api/users", params={"contrato_raiz": "C-100"})

        assert seen[0].path == "/api/users"
        assert seen[0].params["contrato_raiz"] == "C-100"

    @pytest.mark.asyncio
    async def test_retry_on_5xx(self, no_sleep: AsyncMock) -> None:
        transport, calls = _scripted(
            httpx.Response(500), httpx.Response(502), httpx.Response(200, json={})
        )

        response = await _client(transport, read_retries=2).get("/api/users")

        assert response.status_code == 200
        assert calls == ["GET", "GET", "GET"]
        assert [c.args[0] for c in no_sleep.await_args_list] == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_timeout_is_retried(self, no_sleep: AsyncMock) -> None:
        transport, calls = _scripted(httpx.ReadTimeout("lento"), httpx.Response(200, json={}))

        response = await _client(transport, read_retries=1).get("/api/users")

        assert response.status_code == 200
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_exhaust_retries(self, no_sleep: AsyncMock) -> None:
        transport, calls = _scripted(*(httpx.Response(503) for _ in range(3)))

        with pytest.raises(HttpError) as exc_info:
            await _client(transport, read_retries=2).get("/api/users")

        assert exc_info.value.status_code == 503
        assert exc_info.value.is_retryable is True
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_no_retry_on_4xx(self, no_sleep: AsyncMock) -> None:
        transport, calls = _scripted(
            httpx.Response(404, json={"success": False, "message": "Desvio não encontrado"})
        )

        with pytest.raises(HttpError) as exc_info:
            await _client(transport).get("/api/desvios/1")

        assert exc_info.value.detail == "Desvio não encontrado"
        assert calls == ["GET"]
        no_sleep.assert_not_awaited()


class TestMutation:
    """PUT da avaliação: uma tentativa, qualquer que seja a falha."""

    @pytest.mark.asyncio
    async def test_put_with_json(self) -> None:
        bodies: list[bytes] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(request.content)
            return httpx.Response(200, json={"success": True})

        client = _client(httpx.MockTransport(handler))
        await client.put("/api/desvios/1/avaliar", json={"acao": "Trocar guarda-corpo"})

        assert b'"acao"' in bodies[0]

    @pytest.mark.asyncio
    async def test_5xx_is_not_resent(self, no_sleep: AsyncMock) -> None:
        transport, calls = _scripted(httpx.Response(503), httpx.Response(200, json={}))

        with pytest.raises(HttpError) as exc_info:
            await _client(transport).put("/api/desvios/1/avaliar", json={})

        assert exc_info.value.status_code == 503
        assert calls == ["PUT"]
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_timeout_is_not_resent(self, no_sleep: AsyncMock) -> None:
        transport, calls = _scripted(httpx.ReadTimeout("lento"), httpx.Response(200, json={}))

        with pytest.raises(HttpError, match="Timeout"):
            await _client(transport).put("/api/desvios/1/avaliar", json={})

        assert calls == ["PUT"]

    @pytest.mark.asyncio
    async def test_4xx_keeps_server_message(self) -> None:
        transport, _ = _scripted(
            httpx.Response(400, json={"message": "Este desvio não está aguardando avaliação"})
        )

        with pytest.raises(HttpError) as exc_info:
            await _client(transport).put("/api/desvios/1/avaliar", json={})

        assert exc_info.value.is_retryable is False
        assert exc_info.value.detail == "Este desvio não está aguardando avaliação"


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_close_client(self) -> None:
        transport, _ = _scripted(httpx.Response(200, json={}))
        client = _client(transport)
        await client.get("/api/users")

        await client.close()

        assert client._client is None


class TestCreateHttpClient:
    """Factory create_http_client."""

    def test_uses_backend_settings(self) -> None:
        settings = Settings(
            backend_api_base_url="https://api.example.com",
            backend_api_token="abc",
            backend_request_timeout_seconds=10,
            backend_max_retries=5,
            backend_retry_backoff_seconds=1,
        )

        client = create_http_client(settings)

        assert client._config.base_url == "https://api.example.com"
        assert client._config.timeout_seconds == 10.0
        assert client._config.read_retries == 5
        assert client._config.default_headers["Authorization"] == "Bearer abc"

    def test_includes_user_agent(self) -> None:
        settings = Settings(service_name="test_service", version="1.2.3")
        client = create_http_client(settings)
        assert client._config.default_headers["User-Agent"] == "test_service/1.2.3"
        assert "Authorization" not in client._config.default_headers

    def test_verify_ssl_in_production(self) -> None:
        assert create_http_client(Settings(environment="production"))._config.verify_ssl is True
        assert create_http_client(Settings())._config.verify_ssl is False
