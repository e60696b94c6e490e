"""
Resend email client and Supabase auth adapter tests (requests is faked)
"""

import pytest
import requests

from contract_analyser.shared.core.errors import AuthError, DeliveryError
from contract_analyser.shared.services.auth_service import AuthService
from contract_analyser.shared.services.email_service import ResendEmailClient


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self.payload = payload

    def json(self):
        if self.payload is None:
            raise ValueError("No JSON body")
        return self.payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def _respond(self, method, url, **kwargs):
        self.requests.append({"method": method, "url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response

    def post(self, url, **kwargs):
        return self._respond("POST", url, **kwargs)

    def get(self, url, **kwargs):
        return self._respond("GET", url, **kwargs)


class TestResendEmailClient:

    def test_send(self):
        session = FakeSession(FakeResponse(200, {"id": "re_123"}))
        client = ResendEmailClient(api_key="re_key", api_url="https://resend.test/emails", session=session)

        assert client.send("from@test", "to@test", "Subject", "<p>hi</p>") == {"id": "re_123"}
        request = session.requests[0]
        assert request["json"]["to"] == ["to@test"]
        assert request["headers"]["Authorization"] == "Bearer re_key"

    def test_missing_api_key(self, monkeypatch):
        from contract_analyser.shared.core.config import config
        monkeypatch.setattr(config, "RESEND_API_KEY", "")
        with pytest.raises(DeliveryError):
            ResendEmailClient(session=FakeSession()).send("a", "b", "c", "d")

    def test_http_error(self):
        client = ResendEmailClient(api_key="k", session=FakeSession(FakeResponse(422, {"message": "bad"})))
        with pytest.raises(DeliveryError):
            client.send("a", "b", "c", "d")

    def test_transport_error(self):
        client = ResendEmailClient(api_key="k", session=FakeSession(error=requests.ConnectionError("down")))
        with pytest.raises(DeliveryError) as exc_info:
            client.send("a", "b", "c", "d")
        assert exc_info.value.status_code == 502


class TestAuthService:

    def _service(self, session):
        return AuthService(supabase_url="http://auth.test/", anon_key="anon", session=session)

    def test_valid_token(self):
        session = FakeSession(FakeResponse(200, {"id": "user-1", "email": "dana@example.com"}))

        user = self._service(session).get_user("token-abc")

        assert user.id == "user-1"
        assert user.email == "dana@example.com"
        assert session.requests[0]["url"] == "http://auth.test/auth/v1/user"
        assert session.requests[0]["headers"]["apikey"] == "anon"

    @pytest.mark.parametrize("token", [None, "", "null", "undefined"])
    def test_missing_token(self, token):
        session = FakeSession()
        with pytest.raises(AuthError):
            self._service(session).get_user(token)
        assert session.requests == []

    def test_rejected_token(self):
        with pytest.raises(AuthError) as exc_info:
            self._service(FakeSession(FakeResponse(401, {"msg": "expired"}))).get_user("token")
        assert exc_info.value.status_code == 401

    def test_auth_api_unreachable(self):
        with pytest.raises(AuthError):
            self._service(FakeSession(error=requests.Timeout("slow"))).get_user("token")

    def test_payload_without_id(self):
        with pytest.raises(AuthError):
            self._service(FakeSession(FakeResponse(200, {"email": "x@y"}))).get_user("token")
