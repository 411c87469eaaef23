"""Configurações centralizadas do avaliacao_desvios.

Este módulo exporta:
- Settings: classe de configuração via variáveis de ambiente
- get_settings: função cacheada para obter instância única
- Rotas da API de desvios consumidas pelos adapters HTTP

Uso típico:
    from avaliacao_desvios.config import get_settings
"""

from avaliacao_desvios.config.settings import (
    ASSESSMENT_PATH,
    CLASSIFICATION_CATALOG_PATH,
    RESPONSIBLE_DIRECTORY_PATH,
    SUBJECT_PATH,
    Settings,
    get_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "SUBJECT_PATH",
    "ASSESSMENT_PATH",
    "CLASSIFICATION_CATALOG_PATH",
    "RESPONSIBLE_DIRECTORY_PATH",
]
