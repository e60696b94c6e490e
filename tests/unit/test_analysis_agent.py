"""
ContractAnalysisAgent tests with a scripted LLM provider
"""

import asyncio
import json

import pytest

from contract_analyser.analysis_agent.agent import ContractAnalysisAgent
from contract_analyser.shared.core.errors import AnalysisError, ValidationError


def _transient():
    return AnalysisError("rate limited", kind=AnalysisError.TRANSIENT_PROVIDER)


class TestContractAnalysisAgent:

    @pytest.fixture(autouse=True)
    def setup(self, make_provider, make_payload, extraction_payload, fake_translator,
              sleep_recorder, contract_text):
        self.make_provider = make_provider
        self.make_payload = make_payload
        self.extraction_payload = extraction_payload
        self.translator = fake_translator
        self.sleep = sleep_recorder
        self.contract_text = contract_text

    def _agent(self, responses, defensive_translation=False):
        self.provider = self.make_provider(responses)
        return ContractAnalysisAgent(
            provider=self.provider,
            translator=self.translator,
            max_attempts=3,
            initial_delay=1.0,
            defensive_translation=defensive_translation,
            sleep=self.sleep,
        )

    def test_basic_analysis_uses_recomputed_score(self):
        agent = self._agent([self.make_payload(complianceScore=90)])

        result = asyncio.run(agent.analyze(self.contract_text))

        assert result.compliance_score == 74
        assert result.model_compliance_score == 90
        assert [f.title for f in result.findings] == [
            "Unlimited tenant liability",
            "No lawful basis for processing",
            "Ambiguous notice period",
        ]
        assert not result.performed_advanced_analysis
        assert len(self.provider.calls) == 1
        assert self.provider.calls[0]["response_format"] == "json"
        assert self.contract_text in self.provider.calls[0]["user_prompt"]

    def test_prompt_carries_language_and_sentinel(self):
        agent = self._agent([self.make_payload()])

        asyncio.run(agent.analyze(self.contract_text, output_language="fr"))

        system_prompt = self.provider.calls[0]["system_prompt"]
        assert "French" in system_prompt
        assert "Non spécifié" in system_prompt
        assert "-15 points" in system_prompt

    def test_prompt_lists_allowed_values(self):
        agent = self._agent([self.make_payload()])

        asyncio.run(agent.analyze(self.contract_text))

        system_prompt = self.provider.calls[0]["system_prompt"]
        assert "jurisdiction (UK, EU, Ireland, US, Canada, Australia, Islamic Law, Others)" in system_prompt
        assert "Categories must be one of: compliance, risk, data-protection, enforceability, " \
               "drafting, commercial." in system_prompt
        assert "Risk levels must be one of: high, medium, low, none." in system_prompt

    def test_fenced_output(self):
        fenced = "```json\n" + json.dumps(self.make_payload()) + "\n```"
        agent = self._agent([fenced])

        assert asyncio.run(agent.analyze(self.contract_text)).compliance_score == 74

    def test_transient_errors_are_retried(self):
        agent = self._agent([_transient(), _transient(), self.make_payload()])

        result = asyncio.run(agent.analyze(self.contract_text))

        assert result.compliance_score == 74
        assert len(self.provider.calls) == 3
        assert self.sleep.delays == [1.0, 2.0]

    def test_retries_exhausted(self):
        agent = self._agent([_transient(), _transient(), _transient()])

        with pytest.raises(AnalysisError) as exc_info:
            asyncio.run(agent.analyze(self.contract_text))

        assert exc_info.value.kind == AnalysisError.TRANSIENT_PROVIDER
        assert len(self.provider.calls) == 3

    def test_invalid_output_is_not_retried(self):
        agent = self._agent(["Sorry, I cannot help with that."])

        with pytest.raises(AnalysisError) as exc_info:
            asyncio.run(agent.analyze(self.contract_text))

        assert exc_info.value.kind == AnalysisError.INVALID_MODEL_OUTPUT
        assert len(self.provider.calls) == 1
        assert self.sleep.delays == []

    def test_provider_error_is_not_retried(self):
        agent = self._agent([AnalysisError("bad key", kind=AnalysisError.PROVIDER_ERROR)])

        with pytest.raises(AnalysisError):
            asyncio.run(agent.analyze(self.contract_text))
        assert len(self.provider.calls) == 1

    @pytest.mark.parametrize("text", ["", "   "])
    def test_empty_contract(self, text):
        agent = self._agent([])
        with pytest.raises(ValidationError):
            asyncio.run(agent.analyze(text))
        assert self.provider.calls == []

    def test_advanced_analysis_runs_two_passes(self):
        agent = self._agent([self.extraction_payload, self.make_payload(advanced=True)])

        result = asyncio.run(agent.analyze(self.contract_text, advanced=True))

        assert len(self.provider.calls) == 2
        assert "document parser" in self.provider.calls[0]["system_prompt"]
        assert "Structured Metadata" in self.provider.calls[1]["user_prompt"]
        assert "Commercial lease" in self.provider.calls[1]["user_prompt"]
        assert result.performed_advanced_analysis
        assert result.effective_date == "2024-01-15"
        assert result.renewal_date == "Not specified"
        assert result.redlined_clause_artifact.original_clause.startswith("The Tenant")

    def test_defensive_translation(self):
        agent = self._agent([self.make_payload()], defensive_translation=True)

        result = asyncio.run(agent.analyze(self.contract_text, output_language="es"))

        assert result.executive_summary.startswith("[es] ")
        assert [f.title for f in result.findings] == [
            "[es] Unlimited tenant liability",
            "[es] No lawful basis for processing",
            "[es] Ambiguous notice period",
        ]
        assert result.findings[1].recommendations == ["[es] State the lawful basis.", "[es] Add a retention period."]
        assert result.jurisdiction_summaries["UK"].key_findings == ["[es] Liability is uncapped."]
        # Enumerated values are never translated
        assert result.findings[0].risk_level == "high"
        assert result.findings[0].jurisdiction == "UK"

    def test_no_defensive_translation_for_english(self):
        agent = self._agent([self.make_payload()], defensive_translation=True)

        asyncio.run(agent.analyze(self.contract_text, output_language="en"))

        assert self.translator.calls == []

    def test_demo_analysis(self):
        agent = self._agent([{
            "executiveSummary": "A one-sided lease.",
            "overallRiskLevel": "high",
            "keyFindingTitle": "Unlimited liability",
            "keyFindingDescription": "The tenant bears all losses.",
            "complianceScore": "unknown",
            "parties": ["Acme Properties Ltd"],
        }])

        demo = asyncio.run(agent.analyze_demo(self.contract_text, "fr"))

        assert demo.compliance_score == 0
        assert demo.overall_risk_level == "high"
        assert demo.executive_summary == "[fr] A one-sided lease."
        assert demo.key_finding_title == "[fr] Unlimited liability"
        assert demo.parties == ["[fr] Acme Properties Ltd"]
        assert demo.contract_type is None
        assert demo.effective_date == "Non spécifié"

    def test_demo_requires_text(self):
        agent = self._agent([])
        with pytest.raises(ValidationError):
            asyncio.run(agent.analyze_demo("", "en"))
