"""
Outbound email through the Resend HTTP API
"""

import logging
from typing import Dict, List, Union

import requests

from contract_analyser.shared.core.config import config
from contract_analyser.shared.core.errors import DeliveryError

logger = logging.getLogger(__name__)


class ResendEmailClient:
    """
    Minimal Resend client: ``send`` posts one message and returns ``{"id": ...}``
    """

    def __init__(self, api_key: str = None, api_url: str = None, timeout: float = 30.0,
                 session: requests.Session = None):
        self.api_key = api_key or config.RESEND_API_KEY
        self.api_url = api_url or config.RESEND_API_URL
        self.timeout = timeout
        self.session = session or requests.Session()

    def send(self, from_: str, to: Union[str, List[str]], subject: str, html: str) -> Dict[str, str]:
        """
        Send one email

        Raises:
            DeliveryError: missing API key, transport failure or non-2xx response
        """
        if not self.api_key:
            raise DeliveryError("Email provider is not configured")

        recipients = [to] if isinstance(to, str) else list(to)
        payload = {"from": from_, "to": recipients, "subject": subject, "html": html}

        try:
            response = self.session.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Email send failed to {recipients}: {e}")
            raise DeliveryError(f"Failed to send email: {e}") from e

        try:
            message_id = response.json().get("id")
        except ValueError as e:
            raise DeliveryError("Email provider returned an invalid response") from e

        logger.info(f"Email sent to {recipients}: {message_id}")
        return {"id": message_id}


_email_client = None


def get_email_client() -> ResendEmailClient:
    """ResendEmailClient singleton"""
    global _email_client
    if _email_client is None:
        _email_client = ResendEmailClient()
    return _email_client
