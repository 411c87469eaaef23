"""Modelos de domínio (contratos principais).

Os modelos de contexto são imutáveis: o snapshot é carregado uma vez por sessão
e compartilhado por referência entre os componentes.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from avaliacao_desvios.domain.enums import NotificationKind, Origin


class ClassificationPair(BaseModel):
    """Par de potenciais que trafega junto (sede + local)."""

    model_config = ConfigDict(frozen=True)

    global_value: str | None = None
    local_value: str | None = None


class NamedRef(BaseModel):
    """Relacionamento simples exibido no resumo (natureza, tipo)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int | str | None = None
    label: str | None = None


class SubjectImage(BaseModel):
    """Imagem anexada ao desvio."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    file_name: str = Field(alias="nome_arquivo")
    url: str = Field(alias="url_storage")
    category: str | None = Field(default=None, alias="categoria")


class SubjectDetail(BaseModel):
    """Desvio em avaliação (sujeito da sessão)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    description: str = Field(default="", alias="descricao")
    location: str = Field(default="", alias="local")
    status: str | None = None
    classification: str | None = Field(default=None, alias="potencial")
    local_classification: str | None = Field(default=None, alias="potencial_local")
    scope_key: str | None = Field(default=None, alias="contrato")
    see_and_act: bool = Field(default=False, alias="ver_agir")
    caused_refusal: bool = Field(default=False, alias="gerou_recusa")
    nature: NamedRef | None = None
    incident_type: NamedRef | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    images: tuple[SubjectImage, ...] = Field(default=(), alias="imagens")

    @property
    def classification_pair(self) -> ClassificationPair:
        """Par de potenciais informado pelo colaborador."""
        return ClassificationPair(
            global_value=self.classification,
            local_value=self.local_classification,
        )


class ClassificationEntry(BaseModel):
    """Item do catálogo de potenciais de um contrato."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    global_value: str = Field(alias="potencial_sede")
    local_value: str = Field(alias="potencial_local")
    scope_key: str = Field(alias="contrato")

    @property
    def pair(self) -> ClassificationPair:
        return ClassificationPair(global_value=self.global_value, local_value=self.local_value)


class ResponsibleEntry(BaseModel):
    """Usuário elegível como responsável pela tratativa."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    name: str = Field(alias="nome")
    registration: str = Field(alias="matricula")
    email: str | None = None
    scope_key: str = Field(alias="contrato_raiz")


class Respondent(BaseModel):
    """Operador que conduz a avaliação."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    scope_key: str


class ContextSnapshot(BaseModel):
    """Contexto somente leitura carregado uma vez por sessão."""

    model_config = ConfigDict(frozen=True)

    subject: SubjectDetail
    classification_catalog: tuple[ClassificationEntry, ...] = ()
    responsible_directory: tuple[ResponsibleEntry, ...] = ()


class Option(BaseModel):
    """Opção apresentada ao avaliador (choice ou select)."""

    model_config = ConfigDict(frozen=True)

    value: bool | str
    label: str


class Message(BaseModel):
    """Mensagem do transcript.

    Apenas `content` da mensagem em revelação pode mudar (ver SessionState).
    """

    id: int
    origin: Origin
    content: str = ""
    attachment_ref: str | None = None
    question_id: str | None = None
    revealing: bool = False
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))


class SubmissionPayload(BaseModel):
    """Payload da mutação de avaliação (derivado, nunca armazenado)."""

    model_config = ConfigDict(frozen=True)

    responsible_party_id: str
    action_description: str
    is_client_responsibility: bool
    classification_pair: ClassificationPair

    def to_wire(self) -> dict[str, object]:
        """Formato aceito por PUT /api/desvios/{id}/avaliar."""
        body: dict[str, object] = {
            "responsavel": self.responsible_party_id,
            "acao": self.action_description,
            "acao_cliente": self.is_client_responsibility,
        }
        if self.classification_pair.global_value:
            body["potencial"] = self.classification_pair.global_value
        if self.classification_pair.local_value:
            body["potencial_local"] = self.classification_pair.local_value
        return body


class GatewayResult(BaseModel):
    """Resultado do gateway de mutação."""

    success: bool
    subject: SubjectDetail | None = None
    message: str | None = None


class Notification(BaseModel):
    """Notificação transitória emitida ao host."""

    kind: NotificationKind
    text: str
