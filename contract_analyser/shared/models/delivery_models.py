"""
Per-request delivery settings snapshot
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class DeliverySettings:
    """
    Settings read once per request from ``app_settings`` and the user profile

    Attributes:
        global_email_reports_enabled: system-wide email switch
        email_reports_enabled: the user's own preference
        email: recipient address, if known
        full_name: recipient display name, if known
        language_preference: the user's UI language
    """
    global_email_reports_enabled: bool = True
    email_reports_enabled: bool = False
    email: Optional[str] = None
    full_name: Optional[str] = None
    language_preference: str = "en"

    @property
    def recipient_name(self) -> str:
        return self.full_name or self.email or ""
