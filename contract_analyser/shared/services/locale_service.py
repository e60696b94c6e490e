"""
Locale translation tables

Message lookup by key and language code with English as the universal
fallback. Tables live in ``contract_analyser/shared/locales/<lang>.json``.
"""

import json
import logging
import re
from pathlib import Path
from typing import Dict, Optional

from contract_analyser.shared.utils.slug import message_key

logger = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).resolve().parent.parent / "locales"
DEFAULT_LANGUAGE = "en"
SUPPORTED_LANGUAGES = ("en", "es", "fr", "ar")

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


class LocaleService:
    """
    Message-key lookup over JSON translation tables
    """

    def __init__(self, locales_dir: Path = None):
        self.locales_dir = Path(locales_dir) if locales_dir else LOCALES_DIR
        self._tables: Dict[str, Dict[str, str]] = {}
        self._load_tables()

    def _load_tables(self):
        for path in sorted(self.locales_dir.glob("*.json")):
            with open(path, "r", encoding="utf-8") as f:
                self._tables[path.stem] = json.load(f)
        logger.info(f"Loaded locale tables: {sorted(self._tables)}")

        if DEFAULT_LANGUAGE not in self._tables:
            raise ValueError(f"Default locale table missing: {self.locales_dir / 'en.json'}")

    @property
    def languages(self):
        return sorted(self._tables)

    def translate(self, key: str, language: str = DEFAULT_LANGUAGE,
                  default: Optional[str] = None, **params) -> str:
        """
        Look up ``key`` in ``language``

        Falls back to English, then to ``default``, then to the key itself.
        ``{{name}}`` placeholders are replaced from ``params``.
        """
        table = self._tables.get(language or DEFAULT_LANGUAGE, {})
        message = table.get(key)
        if message is None:
            message = self._tables[DEFAULT_LANGUAGE].get(key)
        if message is None:
            message = default if default is not None else key

        if params:
            message = _PLACEHOLDER.sub(
                lambda m: str(params[m.group(1)]) if m.group(1) in params else m.group(0),
                message,
            )
        return message

    def label(self, prefix: str, value, language: str = DEFAULT_LANGUAGE) -> str:
        """
        Localized label for a free-text value, e.g. ``label("jurisdiction", "UK", "fr")``

        Values without a matching ``<prefix>_<slug>`` key render as the raw input.
        """
        raw = "" if value is None else str(value)
        return self.translate(message_key(prefix, raw), language, default=raw)


_locale_service = None


def get_locale_service() -> LocaleService:
    """LocaleService singleton"""
    global _locale_service
    if _locale_service is None:
        _locale_service = LocaleService()
    return _locale_service
