"""
Bearer token verification against the Supabase auth API
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from contract_analyser.shared.core.config import config
from contract_analyser.shared.core.errors import AuthError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: Optional[str] = None


class AuthService:
    """Resolves a bearer token to the user it belongs to"""

    def __init__(self, supabase_url: str = None, anon_key: str = None, timeout: float = 10.0,
                 session: requests.Session = None):
        self.supabase_url = (supabase_url or config.SUPABASE_URL).rstrip("/")
        self.anon_key = anon_key or config.SUPABASE_ANON_KEY
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_user(self, token: Optional[str]) -> AuthenticatedUser:
        """
        Raises:
            AuthError: token missing, rejected, or the auth API is unreachable
        """
        if not token or token in ("null", "undefined") or not token.strip():
            raise AuthError("Authorization token missing")
        if not self.supabase_url:
            raise AuthError("Authentication is not configured")

        try:
            response = self.session.get(
                f"{self.supabase_url}/auth/v1/user",
                headers={"Authorization": f"Bearer {token}", "apikey": self.anon_key},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Auth API request failed: {e}")
            raise AuthError("Failed to authenticate user") from e

        if response.status_code != 200:
            logger.warning(f"Token rejected by auth API: HTTP {response.status_code}")
            raise AuthError("Invalid or expired authentication token")

        data = response.json()
        if not data.get("id"):
            raise AuthError("Invalid token payload")
        return AuthenticatedUser(id=data["id"], email=data.get("email"))


_auth_service = None


def get_auth_service() -> AuthService:
    """AuthService singleton"""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
