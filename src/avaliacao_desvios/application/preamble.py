"""Resumo do desvio apresentado antes da saudação."""

from __future__ import annotations

from avaliacao_desvios.domain.models import SubjectDetail, SubjectImage
from avaliacao_desvios.domain.questions import NOT_INFORMED


def _yes_no(flag: bool) -> str:
    return "Sim" if flag else "Não"


def render_subject_summary(subject: SubjectDetail) -> str:
    """Texto do cartão "INFORMAÇÕES DO DESVIO" (datas em formato pt-BR)."""
    created_date = subject.created_at.strftime("%d/%m/%Y") if subject.created_at else "Não informada"
    created_at = (
        subject.created_at.strftime("%d/%m/%Y %H:%M:%S") if subject.created_at else NOT_INFORMED
    )
    nature = subject.nature.label if subject.nature and subject.nature.label else NOT_INFORMED
    incident_type = (
        subject.incident_type.label
        if subject.incident_type and subject.incident_type.label
        else NOT_INFORMED
    )

    lines = [
        "📋 **INFORMAÇÕES DO DESVIO**",
        "",
        f"**Descrição:** {subject.description or NOT_INFORMED}",
        f"**Local:** {subject.location or NOT_INFORMED}",
        f"**Data de Ocorrência:** {created_date}",
        f"**Natureza:** {nature}",
        f"**Tipo:** {incident_type}",
        f"**Potencial Atual:** {subject.classification or NOT_INFORMED}",
        f"**Potencial Local:** {subject.local_classification or NOT_INFORMED}",
        f"**Ver & Agir:** {_yes_no(subject.see_and_act)}",
        f"**Gerou Recusa:** {_yes_no(subject.caused_refusal)}",
        f"**Status:** {subject.status or NOT_INFORMED}",
        f"**Criado por:** {subject.created_by or NOT_INFORMED}",
        f"**Criado em:** {created_at}",
        "",
    ]
    if subject.images:
        lines.append(f"**Imagens:** {len(subject.images)} arquivo(s) anexado(s)")
        lines.append("")
        lines.extend(
            f"📷 **Imagem {index}:** {image.file_name}"
            for index, image in enumerate(subject.images, start=1)
        )
    else:
        lines.append("**Imagens:** Nenhuma imagem anexada")
    return "\n".join(lines)


def render_attachment_caption(index: int, image: SubjectImage) -> str:
    return (
        f"🖼️ **Imagem {index}:** {image.file_name}\n\n"
        "*Clique para visualizar a imagem em tamanho real*"
    )
