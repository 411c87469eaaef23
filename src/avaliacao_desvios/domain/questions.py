"""Catálogo de perguntas da avaliação conversacional.

Cada pergunta é uma variante de uma união etiquetada por tipo de entrada
(ChoiceQuestion | TextQuestion | LongTextQuestion | SelectQuestion).
A visibilidade é um predicado sobre o registro completo de respostas,
avaliado no momento da transição; nunca depende da posição da pergunta.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import ClassVar, TypeAlias

from avaliacao_desvios.domain.enums import FieldKey, InputKind
from avaliacao_desvios.domain.models import (
    ClassificationEntry,
    ContextSnapshot,
    Option,
    Respondent,
    ResponsibleEntry,
)

AnswerValue: TypeAlias = bool | str
AnswerRecord: TypeAlias = dict[FieldKey, AnswerValue]

NOT_INFORMED = "Não informado"


@dataclass(frozen=True, slots=True)
class PromptContext:
    """Snapshot usado para renderizar textos e resolver opções."""

    respondent: Respondent
    context: ContextSnapshot
    answers: Mapping[FieldKey, AnswerValue]


@dataclass(frozen=True, slots=True, kw_only=True)
class _QuestionBase:
    id: str
    template: Callable[[PromptContext], str]
    field_key: FieldKey | None
    required: bool = True
    visible_when: Callable[[Mapping[FieldKey, AnswerValue]], bool] | None = None

    def render(self, prompt: PromptContext) -> str:
        return self.template(prompt)

    def is_visible(self, answers: Mapping[FieldKey, AnswerValue]) -> bool:
        """Sem predicado a pergunta é sempre visível."""
        return self.visible_when is None or self.visible_when(answers)


@dataclass(frozen=True, slots=True, kw_only=True)
class ChoiceQuestion(_QuestionBase):
    """Escolha única; commit imediato na seleção.

    `aborts_on`: valor que encerra a sessão (ex.: recusa da saudação).
    """

    options: tuple[Option, ...]
    aborts_on: bool | None = None

    kind: ClassVar[InputKind] = InputKind.CHOICE


def _non_blank(value: str) -> bool:
    return bool(value.strip())


@dataclass(frozen=True, slots=True, kw_only=True)
class TextQuestion(_QuestionBase):
    """Texto curto; commit condicionado ao validador."""

    validator: Callable[[str], bool] = _non_blank

    kind: ClassVar[InputKind] = InputKind.TEXT


@dataclass(frozen=True, slots=True, kw_only=True)
class LongTextQuestion(_QuestionBase):
    """Texto longo (textarea); commit condicionado ao validador."""

    validator: Callable[[str], bool] = _non_blank

    kind: ClassVar[InputKind] = InputKind.LONG_TEXT


@dataclass(frozen=True, slots=True, kw_only=True)
class SelectQuestion(_QuestionBase):
    """Seleção pesquisável com opções resolvidas dinamicamente."""

    options_resolver: Callable[[PromptContext], list[Option]]

    kind: ClassVar[InputKind] = InputKind.SELECT


QuestionSpec: TypeAlias = ChoiceQuestion | TextQuestion | LongTextQuestion | SelectQuestion


def min_length(minimum: int) -> Callable[[str], bool]:
    """Validador: texto (sem espaços nas pontas) com pelo menos `minimum` caracteres."""

    def _validator(value: str) -> bool:
        return len(value.strip()) >= minimum

    return _validator


def answered_false(key: FieldKey) -> Callable[[Mapping[FieldKey, AnswerValue]], bool]:
    """Predicado: `key` foi respondida explicitamente com False."""

    def _predicate(answers: Mapping[FieldKey, AnswerValue]) -> bool:
        return answers.get(key) is False

    return _predicate


def classification_entries_in_scope(
    catalog: Iterable[ClassificationEntry], scope_key: str
) -> list[ClassificationEntry]:
    """Potenciais do contrato do avaliador, na ordem do catálogo."""
    return [entry for entry in catalog if entry.scope_key == scope_key]


def responsible_entries_in_scope(
    directory: Iterable[ResponsibleEntry], scope_key: str
) -> list[ResponsibleEntry]:
    """Usuários do mesmo contrato raiz do avaliador."""
    return [entry for entry in directory if entry.scope_key == scope_key]


def classification_options(prompt: PromptContext) -> list[Option]:
    entries = classification_entries_in_scope(
        prompt.context.classification_catalog, prompt.respondent.scope_key
    )
    return [Option(value=entry.local_value, label=entry.local_value) for entry in entries]


def responsible_options(prompt: PromptContext) -> list[Option]:
    entries = responsible_entries_in_scope(
        prompt.context.responsible_directory, prompt.respondent.scope_key
    )
    return [
        Option(value=entry.registration, label=f"{entry.name} ({entry.registration})")
        for entry in entries
    ]


def _yes_no(yes: str, no: str) -> tuple[Option, ...]:
    return (Option(value=True, label=yes), Option(value=False, label=no))


def _greeting_text(prompt: PromptContext) -> str:
    name = prompt.respondent.name or "avaliador"
    return f"Olá {name}! 👋 Vamos iniciar a avaliação deste desvio?"


def _agreement_text(prompt: PromptContext) -> str:
    current = prompt.context.subject.classification or NOT_INFORMED
    return f'Você concorda com o POTENCIAL "{current}" informado pelo colaborador?'


def build_catalog(action_min_length: int = 10) -> tuple[QuestionSpec, ...]:
    """Monta o catálogo ordenado de perguntas da avaliação de desvio."""
    return (
        ChoiceQuestion(
            id="greeting",
            template=_greeting_text,
            field_key=FieldKey.START_ASSESSMENT,
            options=_yes_no("✅ Sim, vamos começar!", "❌ Não, cancelar avaliação"),
            aborts_on=False,
        ),
        ChoiceQuestion(
            id="concorda_potencial",
            template=_agreement_text,
            field_key=FieldKey.AGREES_WITH_CLASSIFICATION,
            options=_yes_no(
                "✅ Sim, concordo com o potencial informado",
                "❌ Não, preciso alterar o potencial",
            ),
        ),
        SelectQuestion(
            id="novo_potencial",
            template=lambda _: "Qual o potencial mais adequado para esse desvio?",
            field_key=FieldKey.REPLACEMENT_CLASSIFICATION,
            options_resolver=classification_options,
            visible_when=answered_false(FieldKey.AGREES_WITH_CLASSIFICATION),
        ),
        ChoiceQuestion(
            id="acao_cliente",
            template=lambda _: "O desvio é de responsabilidade do cliente?",
            field_key=FieldKey.CLIENT_RESPONSIBILITY,
            options=_yes_no(
                "✅ Sim, é responsabilidade do cliente",
                "❌ Não, é responsabilidade interna",
            ),
        ),
        SelectQuestion(
            id="responsavel",
            template=lambda _: "Quem é o responsável por resolver esse desvio?",
            field_key=FieldKey.RESPONSIBLE,
            options_resolver=responsible_options,
        ),
        LongTextQuestion(
            id="acao",
            template=lambda _: "Qual ação deve ser realizada para resolver este desvio?",
            field_key=FieldKey.ACTION,
            validator=min_length(action_min_length),
        ),
    )


def next_visible_index(
    questions: Sequence[QuestionSpec],
    current_index: int,
    answers: Mapping[FieldKey, AnswerValue],
) -> int | None:
    """Primeira pergunta visível após `current_index`; None encerra o fluxo.

    Use current_index=-1 para obter a primeira pergunta da sessão.
    """
    for index in range(current_index + 1, len(questions)):
        if questions[index].is_visible(answers):
            return index
    return None
