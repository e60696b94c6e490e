"""
Slug helpers for locale message keys

Free-text values such as jurisdiction or category names are turned into
lookup keys like ``jurisdiction_islamic_law`` or ``category_data_protection``.
"""

import re

_SEPARATORS = re.compile(r"[\s\-]+")


def slugify_key(value) -> str:
    """
    Normalize free text into a message-key slug

    Lowercases, trims, and collapses whitespace and hyphens into a single
    underscore. ``None`` yields an empty string.

    >>> slugify_key("Islamic Law")
    'islamic_law'
    >>> slugify_key("data-protection")
    'data_protection'
    """
    if value is None:
        return ""
    return _SEPARATORS.sub("_", str(value).strip().lower())


def message_key(prefix: str, value) -> str:
    """Build ``<prefix>_<slug>``, e.g. ``message_key("risk", "High") == "risk_high"``."""
    return f"{prefix}_{slugify_key(value)}"
