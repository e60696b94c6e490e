"""
Shared test configuration

The environment is pointed at a throwaway SQLite database and storage
directory before the package (and its config singleton) is imported.
"""

import json
import os
import tempfile
from pathlib import Path

_TMP_DIR = Path(tempfile.mkdtemp(prefix="contract_analyser_tests_"))

os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'contracts.db'}"
os.environ["STORAGE_PATH"] = str(_TMP_DIR / "storage")
os.environ["STORAGE_SIGNING_SECRET"] = "test-signing-secret"
os.environ["STORAGE_PUBLIC_BASE_URL"] = "http://testserver/storage"
os.environ["OPENAI_API_KEY"] = "sk-test"
os.environ["SUPABASE_URL"] = "http://auth.test"
os.environ["SUPABASE_ANON_KEY"] = "anon-test"
os.environ["RESEND_API_KEY"] = "re_test"
os.environ["APP_BASE_URL"] = "https://app.test"
os.environ["ALLOWED_ORIGINS"] = "https://app.test"
os.environ["DEFENSIVE_TRANSLATION"] = "false"
os.environ["RETENTION_DAYS"] = "30"

import pytest

from contract_analyser.shared.database import Base, SessionLocal, engine, init_db
from contract_analyser.shared.services.blob_storage import LocalBlobStorage


class FakeProvider:
    """Replays canned completions (or raises canned errors) in order"""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    async def generate(self, system_prompt, user_prompt, response_format="json",
                       temperature=0.2, max_tokens=None, model=None):
        self.calls.append({
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "response_format": response_format,
        })
        if not self.responses:
            raise AssertionError("FakeProvider has no responses left")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, dict):
            return json.dumps(response)
        return response


class FakeTranslator:
    """Prefixes text with the target language instead of calling a model"""

    def __init__(self):
        self.calls = []

    async def translate_text(self, text, target_language, source_language="en"):
        if not text or target_language == source_language:
            return text or ""
        self.calls.append((text, target_language))
        return f"[{target_language}] {text}"

    async def translate_many(self, texts, target_language, source_language="en"):
        return [await self.translate_text(text, target_language, source_language) for text in texts]


class FakeEmailClient:
    def __init__(self, error=None):
        self.error = error
        self.sent = []

    def send(self, from_, to, subject, html):
        if self.error is not None:
            raise self.error
        self.sent.append({"from": from_, "to": to, "subject": subject, "html": html})
        return {"id": f"email_{len(self.sent)}"}


class SleepRecorder:
    """Awaitable stand-in for asyncio.sleep"""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def build_payload(advanced=False, **overrides):
    """Model JSON for a lease with one high, one medium and one low finding"""
    payload = {
        "executiveSummary": "The lease is broadly compliant but the liability clause is one-sided.",
        "dataProtectionImpact": "Tenant data is processed without a stated lawful basis.",
        "complianceScore": 74,
        "findings": [
            {
                "title": "Unlimited tenant liability",
                "description": "The tenant bears unlimited liability for all losses.",
                "riskLevel": "high",
                "jurisdiction": "UK",
                "category": "risk",
                "recommendations": ["Cap liability at twelve months of rent."],
                "clauseReference": "Clause 9.1",
            },
            {
                "title": "No lawful basis for processing",
                "description": "Personal data processing lacks a lawful basis.",
                "riskLevel": "medium",
                "jurisdiction": "EU",
                "category": "data-protection",
                "recommendations": ["State the lawful basis.", "Add a retention period."],
            },
            {
                "title": "Ambiguous notice period",
                "description": "The notice period is not defined in days.",
                "riskLevel": "low",
                "jurisdiction": "UK",
                "category": "drafting",
                "recommendations": [],
            },
        ],
        "jurisdictionSummaries": {
            "UK": {
                "jurisdiction": "UK",
                "applicableLaws": ["Landlord and Tenant Act 1985"],
                "keyFindings": ["Liability is uncapped."],
                "riskLevel": "high",
            },
            "EU": {
                "jurisdiction": "EU",
                "applicableLaws": ["GDPR"],
                "keyFindings": ["No lawful basis is stated."],
                "riskLevel": "medium",
            },
        },
    }
    if advanced:
        payload.update({
            "effectiveDate": "2024-01-15",
            "terminationDate": "2026",
            "renewalDate": "not_specified",
            "contractType": "Commercial lease",
            "contractValue": "GBP 48,000 per year",
            "parties": ["Acme Properties Ltd", "Widget Co"],
            "liabilityCapSummary": "No cap on tenant liability.",
            "indemnificationClauseSummary": "Tenant indemnifies landlord for all claims.",
            "confidentialityObligationsSummary": "Mutual confidentiality for two years.",
            "redlinedClauseArtifact": {
                "originalClause": "The Tenant shall be liable for all losses.",
                "redlinedVersion": "The Tenant shall be liable for direct losses up to the Cap.",
                "suggestedRevision": "Limit liability to twelve months of rent.",
                "findingId": "Unlimited tenant liability",
            },
        })
    payload.update(overrides)
    return payload


EXTRACTION_PAYLOAD = {
    "contractType": "Commercial lease",
    "parties": ["Acme Properties Ltd", "Widget Co"],
    "effectiveDate": "2024-01-15",
    "sections": [{"title": "Liability", "text": "The Tenant shall be liable for all losses."}],
}

CONTRACT_TEXT = (
    "COMMERCIAL LEASE between Acme Properties Ltd and Widget Co.\n"
    "9.1 The Tenant shall be liable for all losses arising from the use of the Premises.\n"
    "12. Either party may terminate on reasonable notice."
)


@pytest.fixture
def db_session():
    """Fresh tables for every test"""
    init_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        with engine.begin() as connection:
            for table in reversed(Base.metadata.sorted_tables):
                connection.execute(table.delete())


@pytest.fixture
def storage(tmp_path):
    return LocalBlobStorage(
        root=tmp_path / "blobs",
        signing_secret="test-signing-secret",
        public_base_url="http://testserver/storage",
    )


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def fake_translator():
    return FakeTranslator()


@pytest.fixture
def fake_email():
    return FakeEmailClient()


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest.fixture
def make_email_client():
    return FakeEmailClient


@pytest.fixture
def make_payload():
    return build_payload


@pytest.fixture
def extraction_payload():
    return dict(EXTRACTION_PAYLOAD)


@pytest.fixture
def contract_text():
    return CONTRACT_TEXT
