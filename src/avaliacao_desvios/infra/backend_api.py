"""Adapters HTTP da API de desvios.

- HttpContextDataLoader: leitura do desvio, catálogo de potenciais e usuários
- HttpMutationGateway: PUT da avaliação

Mapeamento explícito do JSON do backend para os modelos de domínio
(ids numéricos convertidos para str; natureza/tipo/criador aninhados).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from avaliacao_desvios.config.settings import (
    ASSESSMENT_PATH,
    CLASSIFICATION_CATALOG_PATH,
    RESPONSIBLE_DIRECTORY_PATH,
    SUBJECT_PATH,
)
from avaliacao_desvios.domain.errors import ContextLoadError
from avaliacao_desvios.domain.models import (
    ClassificationEntry,
    GatewayResult,
    NamedRef,
    ResponsibleEntry,
    SubjectDetail,
    SubjectImage,
    SubmissionPayload,
)
from avaliacao_desvios.domain.protocols import (
    ContextDataLoaderProtocol,
    MutationGatewayProtocol,
)
from avaliacao_desvios.infra.http import HttpClient, HttpError
from avaliacao_desvios.observability.logging import get_logger
from avaliacao_desvios.utils.ids import short_id

logger: logging.Logger = get_logger(__name__)

_DEFAULT_SUBMIT_ERROR = "Erro ao avaliar desvio"


def _str_or_none(value: Any) -> str | None:
    return None if value is None else str(value)


def _named_ref(raw: Any, label_key: str) -> NamedRef | None:
    if not isinstance(raw, Mapping):
        return None
    return NamedRef(id=raw.get("id"), label=_str_or_none(raw.get(label_key)))


def _image_from_wire(raw: Mapping[str, Any]) -> SubjectImage:
    return SubjectImage(
        id=str(raw["id"]),
        file_name=raw.get("nome_arquivo") or "",
        url=raw.get("url_storage") or "",
        category=raw.get("categoria"),
    )


def subject_from_wire(raw: Mapping[str, Any]) -> SubjectDetail:
    """Converte o objeto `data` de GET /api/desvios/{id}."""
    creator = raw.get("criador")
    return SubjectDetail(
        id=str(raw["id"]),
        description=raw.get("descricao") or "",
        location=raw.get("local") or "",
        status=raw.get("status"),
        classification=raw.get("potencial"),
        local_classification=raw.get("potencial_local"),
        scope_key=_str_or_none(raw.get("contrato")),
        see_and_act=bool(raw.get("ver_agir")),
        caused_refusal=bool(raw.get("gerou_recusa")),
        nature=_named_ref(raw.get("natureza"), "natureza"),
        incident_type=_named_ref(raw.get("tipo"), "tipo"),
        created_by=creator.get("nome") if isinstance(creator, Mapping) else None,
        created_at=raw.get("created_at"),
        images=tuple(_image_from_wire(image) for image in raw.get("imagens") or ()),
    )


def classification_from_wire(raw: Mapping[str, Any]) -> ClassificationEntry:
    return ClassificationEntry(
        id=str(raw["id"]),
        global_value=str(raw.get("potencial_sede") or ""),
        local_value=str(raw.get("potencial_local") or ""),
        scope_key=str(raw.get("contrato") or ""),
    )


def responsible_from_wire(raw: Mapping[str, Any]) -> ResponsibleEntry:
    return ResponsibleEntry(
        id=str(raw["id"]),
        name=raw.get("nome") or "",
        registration=str(raw.get("matricula") or ""),
        email=raw.get("email"),
        scope_key=str(raw.get("contrato_raiz") or ""),
    )


class HttpContextDataLoader(ContextDataLoaderProtocol):
    """Leitura do contexto via API REST (Bearer token no HttpClient)."""

    def __init__(self, client: HttpClient) -> None:
        self._client = client

    async def get_subject(self, subject_id: str) -> SubjectDetail:
        response = await self._client.get(SUBJECT_PATH.format(subject_id=subject_id))
        body = response.json()
        if not body.get("success") or not isinstance(body.get("data"), Mapping):
            logger.warning(
                "subject_payload_invalid",
                extra={"subject_id": short_id(subject_id)},
            )
            raise ContextLoadError(body.get("message") or "Desvio não encontrado")
        return subject_from_wire(body["data"])

    async def get_classification_catalog(self, scope_key: str) -> list[ClassificationEntry]:
        response = await self._client.get(
            CLASSIFICATION_CATALOG_PATH, params={"contrato": scope_key}
        )
        items = response.json().get("data") or []
        return [classification_from_wire(item) for item in items]

    async def get_responsible_directory(self, scope_key: str) -> list[ResponsibleEntry]:
        response = await self._client.get(
            RESPONSIBLE_DIRECTORY_PATH, params={"contrato_raiz": scope_key}
        )
        items = response.json().get("users") or []
        return [responsible_from_wire(item) for item in items]


class HttpMutationGateway(MutationGatewayProtocol):
    """Envio da avaliação via PUT único; erros HTTP viram GatewayResult(success=False).

    Timeout ou 5xx não são reenviados: o servidor pode já ter gravado a
    avaliação, e um segundo PUT seria recusado.
    """

    def __init__(self, client: HttpClient) -> None:
        self._client = client

    async def submit_assessment(
        self, subject_id: str, payload: SubmissionPayload
    ) -> GatewayResult:
        try:
            response = await self._client.put(
                ASSESSMENT_PATH.format(subject_id=subject_id),
                json=payload.to_wire(),
            )
        except HttpError as e:
            logger.warning(
                "assessment_rejected",
                extra={"subject_id": short_id(subject_id), "status_code": e.status_code},
            )
            return GatewayResult(success=False, message=e.detail or _DEFAULT_SUBMIT_ERROR)

        body = response.json()
        if not body.get("success", True):
            return GatewayResult(
                success=False, message=body.get("message") or _DEFAULT_SUBMIT_ERROR
            )

        data = body.get("data")
        subject = subject_from_wire(data) if isinstance(data, Mapping) and "id" in data else None
        return GatewayResult(success=True, subject=subject, message=body.get("message"))
