"""Geradores de identificadores."""

from __future__ import annotations

import uuid


def new_session_id() -> str:
    """Gera um session_id único."""

    return str(uuid.uuid4())


def short_id(value: str | None) -> str | None:
    """Prefixo seguro para logs (nunca logar ids completos)."""

    if not value:
        return None
    return value[:8] + "..."
