"""Localized reply text loaded from JSON catalogs in ``gatekeeper/locales``."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger("gatekeeper.i18n")

LOCALES_DIR = Path(__file__).resolve().parent / "locales"
FALLBACK_LOCALE = "en"


class Translator:
    """Render message keys for a locale, falling back to a default locale."""

    def __init__(self, default_locale: str = FALLBACK_LOCALE) -> None:
        self.default_locale = default_locale
        self._catalogs: dict[str, dict[str, str]] = {}

    @classmethod
    def from_directory(
        cls, path: Path = LOCALES_DIR, default_locale: str = FALLBACK_LOCALE
    ) -> Translator:
        """Load every ``<locale>.json`` file in *path*."""
        translator = cls(default_locale)
        for file in sorted(path.glob("*.json")):
            translator.define(file.stem, json.loads(file.read_text(encoding="utf-8")))
        logger.info("Loaded locales: %s", ", ".join(translator.locales) or "none")
        return translator

    @property
    def locales(self) -> list[str]:
        return sorted(self._catalogs)

    def define(self, locale: str, messages: dict[str, str]) -> None:
        """Merge *messages* into the catalog for *locale*."""
        self._catalogs.setdefault(locale, {}).update(messages)

    def _candidates(self, locale: str | None) -> list[str]:
        chain: list[str] = []
        if locale:
            # Discord sends tags like "zh-CN"; try the full tag, then the language
            chain.append(locale)
            chain.append(locale.split("-")[0])
        chain.extend([self.default_locale, FALLBACK_LOCALE])
        return chain

    def text(self, key: str, locale: str | None = None, **params: Any) -> str:
        """Render *key* for *locale*. Unknown keys render as the key itself."""
        for candidate in self._candidates(locale):
            template = self._catalogs.get(candidate, {}).get(key)
            if template is not None:
                return template.format(**params)
        logger.warning("Missing translation for %s", key)
        return key
