"""Re-exports dos Protocolos de domínio para uso por Application."""

from __future__ import annotations

from avaliacao_desvios.domain.protocols.context_loader import ContextDataLoaderProtocol
from avaliacao_desvios.domain.protocols.mutation_gateway import MutationGatewayProtocol
from avaliacao_desvios.domain.protocols.notifier import NotifierProtocol

__all__ = [
    "ContextDataLoaderProtocol",
    "MutationGatewayProtocol",
    "NotifierProtocol",
]
