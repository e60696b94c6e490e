"""
Delivery Dispatcher

Decides whether a report email goes out and assembles the localized message.
Gates are checked in order and the first closed gate wins:

1. the caller's ``send_email`` flag
2. the global ``global_email_reports_enabled`` setting
3. the user's ``email_reports_enabled`` preference
"""

import logging
from dataclasses import dataclass
from html import escape
from typing import Optional
from urllib.parse import quote

from contract_analyser.shared.core.config import config
from contract_analyser.shared.core.errors import DeliveryError
from contract_analyser.shared.models import DeliverySettings
from contract_analyser.shared.services.email_service import get_email_client
from contract_analyser.shared.services.locale_service import get_locale_service

logger = logging.getLogger(__name__)

SKIP_CALLER = "skipped_by_caller"
SKIP_GLOBAL = "disabled_globally"
SKIP_USER = "disabled_by_user"
SKIP_NO_RECIPIENT = "no_recipient"
SENT = "sent"


def should_send(send_email_flag: bool, global_enabled: bool, user_enabled: bool) -> bool:
    """Three-gate delivery decision"""
    return skip_reason(send_email_flag, global_enabled, user_enabled) is None


def skip_reason(send_email_flag: bool, global_enabled: bool, user_enabled: bool) -> Optional[str]:
    if not send_email_flag:
        return SKIP_CALLER
    if not global_enabled:
        return SKIP_GLOBAL
    if not user_enabled:
        return SKIP_USER
    return None


@dataclass(frozen=True)
class EmailPayload:
    from_: str
    to: str
    subject: str
    html: str


@dataclass(frozen=True)
class DeliveryOutcome:
    sent: bool
    reason: str
    message_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {"sent": self.sent, "reason": self.reason, "messageId": self.message_id}


def public_report_url(signed_url: str, app_base_url: str = None) -> str:
    base = (app_base_url or config.APP_BASE_URL).rstrip("/")
    return f"{base}/public-report-view?url={quote(signed_url, safe='')}"


class DeliveryDispatcher:
    """
    Report email dispatcher
    """

    def __init__(self, email_client=None, locale=None, sender: str = None, app_base_url: str = None):
        self.email_client = email_client or get_email_client()
        self.locale = locale or get_locale_service()
        self.sender = sender or config.EMAIL_FROM
        self.app_base_url = app_base_url or config.APP_BASE_URL

    def build_payload(
        self,
        recipient: str,
        recipient_name: str,
        contract_name: str,
        executive_summary: str,
        report_html: str,
        report_url: str,
        language: str = "en",
    ) -> EmailPayload:
        """Localized subject and body; the full report HTML is embedded in the body"""
        t = self.locale.translate
        viewer_url = escape(public_report_url(report_url, self.app_base_url))
        html = "\n".join([
            f"<p>{escape(t('email_hello', language, recipientName=recipient_name or recipient))}</p>",
            f"<p>{escape(t('email_report_intro', language, contractName=contract_name))}</p>",
            f"<p><strong>{escape(t('executive_summary', language))}:</strong></p>",
            f"<p>{escape(executive_summary)}</p>",
            f'<p><a href="{viewer_url}">{escape(t("email_view_report_online", language))}</a></p>',
            "<hr/>",
            report_html,
            "<hr/>",
            f"<p>{escape(t('email_team', language))}</p>",
        ])
        return EmailPayload(
            from_=self.sender,
            to=recipient,
            subject=t("email_subject_analysis_report", language, contractName=contract_name),
            html=html,
        )

    def dispatch(
        self,
        settings: DeliverySettings,
        send_email: bool,
        contract_name: str,
        executive_summary: str,
        report_html: str,
        report_url: str,
        language: str = "en",
    ) -> DeliveryOutcome:
        """
        Send the report email if every gate is open

        Raises:
            DeliveryError: the email provider failed (not retried here)
        """
        reason = skip_reason(send_email, settings.global_email_reports_enabled, settings.email_reports_enabled)
        if reason is not None:
            logger.info(f"Report email skipped: {reason}")
            return DeliveryOutcome(sent=False, reason=reason)
        if not settings.email:
            logger.warning("Report email skipped: recipient has no email address")
            return DeliveryOutcome(sent=False, reason=SKIP_NO_RECIPIENT)

        payload = self.build_payload(
            recipient=settings.email,
            recipient_name=settings.recipient_name,
            contract_name=contract_name,
            executive_summary=executive_summary,
            report_html=report_html,
            report_url=report_url,
            language=language,
        )
        try:
            response = self.email_client.send(payload.from_, payload.to, payload.subject, payload.html)
        except DeliveryError:
            logger.error(f"Report email to {payload.to} failed")
            raise
        return DeliveryOutcome(sent=True, reason=SENT, message_id=(response or {}).get("id"))
