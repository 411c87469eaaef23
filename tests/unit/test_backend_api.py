"""Testes dos adapters HTTP da API de desvios (HttpClient mockado)."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest

from avaliacao_desvios.domain.errors import ContextLoadError
from avaliacao_desvios.domain.models import ClassificationPair, SubmissionPayload
from avaliacao_desvios.infra.backend_api import (
    HttpContextDataLoader,
    HttpMutationGateway,
    subject_from_wire,
)
from avaliacao_desvios.infra.http import HttpClient, HttpClientConfig, HttpError

SUBJECT_JSON = {
    "id": 42,
    "descricao": "Extintor vencido",
    "local": "Galpão 2",
    "status": "Aguardando Avaliação",
    "potencial": "Médio",
    "potencial_local": "Local-Médio",
    "contrato": "C-100",
    "ver_agir": True,
    "gerou_recusa": False,
    "natureza": {"id": 3, "natureza": "Segurança"},
    "tipo": {"id": 7, "tipo": "Condição insegura"},
    "criador": {"nome": "Maria"},
    "created_at": "2026-03-10T14:30:00Z",
    "imagens": [
        {
            "id": 9,
            "nome_arquivo": "extintor.jpg",
            "url_storage": "https://storage.example/extintor.jpg",
            "categoria": "antes",
        }
    ],
}


@pytest.fixture
def client() -> AsyncMock:
    return AsyncMock(spec=HttpClient)


class TestSubjectMapping:
    """Mapeamento explícito do JSON do desvio."""

    def test_nested_fields(self) -> None:
        subject = subject_from_wire(SUBJECT_JSON)
        assert subject.id == "42"
        assert subject.nature is not None and subject.nature.label == "Segurança"
        assert subject.incident_type is not None
        assert subject.incident_type.label == "Condição insegura"
        assert subject.created_by == "Maria"
        assert subject.see_and_act is True
        assert subject.images[0].id == "9"
        assert subject.images[0].url == "https://storage.example/extintor.jpg"

    def test_missing_optional_fields(self) -> None:
        subject = subject_from_wire({"id": "1"})
        assert subject.nature is None
        assert subject.created_by is None
        assert subject.images == ()


class TestHttpContextDataLoader:
    """Leitura do contexto."""

    @pytest.mark.asyncio
    async def test_get_subject(self, client: AsyncMock) -> None:
        client.get.return_value = httpx.Response(200, json={"success": True, "data": SUBJECT_JSON})

        subject = await HttpContextDataLoader(client).get_subject("42")

        client.get.assert_awaited_once_with("/api/desvios/42")
        assert subject.classification_pair == ClassificationPair(
            global_value="Médio", local_value="Local-Médio"
        )

    @pytest.mark.asyncio
    async def test_get_subject_unsuccessful(self, client: AsyncMock) -> None:
        client.get.return_value = httpx.Response(
            200, json={"success": False, "message": "Desvio não encontrado"}
        )
        with pytest.raises(ContextLoadError, match="Desvio não encontrado"):
            await HttpContextDataLoader(client).get_subject("42")

    @pytest.mark.asyncio
    async def test_get_classification_catalog(self, client: AsyncMock) -> None:
        client.get.return_value = httpx.Response(
            200,
            json={
                "data": [
                    {
                        "id": 1,
                        "potencial_sede": "Alto",
                        "potencial_local": "Local-Alto",
                        "contrato": "C-100",
                    }
                ]
            },
        )

        entries = await HttpContextDataLoader(client).get_classification_catalog("C-100")

        assert entries[0].id == "1"
        assert entries[0].pair == ClassificationPair(global_value="Alto", local_value="Local-Alto")

    @pytest.mark.asyncio
    async def test_get_responsible_directory(self, client: AsyncMock) -> None:
        client.get.return_value = httpx.Response(
            200,
            json={
                "success": True,
                "users": [
                    {
                        "id": "u1",
                        "nome": "Ricardo",
                        "email": "ricardo@example.com",
                        "matricula": 1234,
                        "contrato_raiz": "C-100",
                    }
                ],
            },
        )

        entries = await HttpContextDataLoader(client).get_responsible_directory("C-100")

        assert entries[0].registration == "1234"
        assert entries[0].scope_key == "C-100"


class TestHttpMutationGateway:
    """PUT da avaliação."""

    @pytest.fixture
    def payload(self) -> SubmissionPayload:
        return SubmissionPayload(
            responsible_party_id="R1",
            action_description="Trocar extintor",
            is_client_responsibility=False,
            classification_pair=ClassificationPair(global_value="Alto", local_value="Local-Alto"),
        )

    @pytest.mark.asyncio
    async def test_submit_success(self, client: AsyncMock, payload: SubmissionPayload) -> None:
        client.put.return_value = httpx.Response(
            200, json={"success": True, "data": {**SUBJECT_JSON, "status": "Em Andamento"}}
        )

        result = await HttpMutationGateway(client).submit_assessment("42", payload)

        client.put.assert_awaited_once_with("/api/desvios/42/avaliar", json=payload.to_wire())
        assert result.success is True
        assert result.subject is not None
        assert result.subject.status == "Em Andamento"

    @pytest.mark.asyncio
    async def test_http_error_becomes_unsuccessful_result(
        self, client: AsyncMock, payload: SubmissionPayload
    ) -> None:
        client.put.side_effect = HttpError(
            "HTTP 409", status_code=409, detail="Desvio já foi avaliado"
        )

        result = await HttpMutationGateway(client).submit_assessment("42", payload)

        assert result.success is False
        assert result.message == "Desvio já foi avaliado"

    @pytest.mark.asyncio
    async def test_http_error_without_detail(
        self, client: AsyncMock, payload: SubmissionPayload
    ) -> None:
        client.put.side_effect = HttpError("Timeout", is_retryable=True)
        result = await HttpMutationGateway(client).submit_assessment("42", payload)
        assert result.message == "Erro ao avaliar desvio"

    @pytest.mark.asyncio
    async def test_submission_sent_once_on_503(self, payload: SubmissionPayload) -> None:
        """5xx na avaliação não gera um segundo PUT (o servidor recusaria o reenvio)."""
        methods: list[str] = []
        responses = [
            httpx.Response(503),
            httpx.Response(400, json={"message": "Este desvio não está aguardando avaliação"}),
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            methods.append(request.method)
            return responses.pop(0)

        client = HttpClient(
            HttpClientConfig(base_url="https://api.example.com", read_retries=3),
            transport=httpx.MockTransport(handler),
        )

        result = await HttpMutationGateway(client).submit_assessment("42", payload)

        assert methods == ["PUT"]
        assert result.success is False
        assert result.message == "Erro ao avaliar desvio"

    @pytest.mark.asyncio
    async def test_context_reads_are_retried(self) -> None:
        methods: list[str] = []
        responses = [
            httpx.Response(502),
            httpx.Response(200, json={"success": True, "data": SUBJECT_JSON}),
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            methods.append(request.method)
            return responses.pop(0)

        client = HttpClient(
            HttpClientConfig(
                base_url="https://api.example.com", read_retries=3, backoff_base_seconds=0
            ),
            transport=httpx.MockTransport(handler),
        )

        subject = await HttpContextDataLoader(client).get_subject("42")

        assert methods == ["GET", "GET"]
        assert subject.id == "42"
