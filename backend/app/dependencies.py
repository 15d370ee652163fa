"""FastAPI dependency injection."""

from __future__ import annotations

from functools import lru_cache

from app.config import settings
from app.engine.shortcodes import ShortcodeTable, default_shortcodes


def get_settings():
    return settings


@lru_cache(maxsize=1)
def get_shortcodes() -> ShortcodeTable:
    if settings.shortcodes_file:
        return ShortcodeTable.from_file(settings.shortcodes_file)
    return default_shortcodes()
