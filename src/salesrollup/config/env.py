"""Environment variable loaders for configuration."""

from __future__ import annotations

import os


def get_env_var(name: str) -> str | None:
    """Return the stripped value of ``name``; blank values count as unset."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()
