"""Sanitização de texto vindo de usuários (e da IA) antes de persistir."""

from __future__ import annotations

import bleach


def sanitize_text(value: str | None) -> str:
    """Remove todas as tags HTML e espaços nas bordas."""
    if not value:
        return ""
    return bleach.clean(value, tags=[], attributes={}, strip=True).strip()
