"""Protocolo de domínio para envio da avaliação."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from avaliacao_desvios.domain.models import GatewayResult, SubmissionPayload


class MutationGatewayProtocol(ABC):
    """Contrato mínimo assíncrono para a mutação de avaliação."""

    @abstractmethod
    async def submit_assessment(
        self, subject_id: str, payload: SubmissionPayload
    ) -> GatewayResult: ...
