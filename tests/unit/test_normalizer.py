"""
Model output parsing and normalization tests
"""

import pytest

from contract_analyser.analysis_agent import normalizer
from contract_analyser.analysis_agent.normalizer import (
    coerce_score,
    normalize_analysis,
    normalize_artifact,
    normalize_date,
    normalize_demo,
    normalize_jurisdiction_summaries,
    normalize_parties,
    normalize_risk_level,
    parse_model_output,
)
from contract_analyser.shared.core.errors import AnalysisError

NOT_SPECIFIED = "Not specified"


class TestParseModelOutput:

    def test_plain_json(self):
        assert parse_model_output('{"a": 1}') == {"a": 1}

    def test_code_fences_are_stripped(self):
        raw = '```json\n{"executiveSummary": "ok"}\n```'
        assert parse_model_output(raw) == {"executiveSummary": "ok"}

    @pytest.mark.parametrize("raw", [None, "", "   \n"])
    def test_empty_output(self, raw):
        with pytest.raises(AnalysisError) as exc_info:
            parse_model_output(raw)
        assert exc_info.value.kind == AnalysisError.EMPTY_MODEL_OUTPUT

    @pytest.mark.parametrize("raw", ["I cannot analyze this contract.", "[1, 2, 3]", '"text"'])
    def test_invalid_output(self, raw):
        with pytest.raises(AnalysisError) as exc_info:
            parse_model_output(raw)
        assert exc_info.value.kind == AnalysisError.INVALID_MODEL_OUTPUT
        assert not exc_info.value.is_transient


class TestFieldNormalizers:

    @pytest.mark.parametrize("value, expected", [
        ("high", "high"),
        ("medium", "medium"),
        ("low", "low"),
        ("none", "none"),
        ("High", "none"),
        ("critical", "none"),
        (None, "none"),
        (3, "none"),
    ])
    def test_risk_level(self, value, expected):
        assert normalize_risk_level(value) == expected

    @pytest.mark.parametrize("value, expected", [
        (74, 74),
        (73.6, 74),
        (150, 100),
        (-5, 0),
        ("85", 0),
        (None, 0),
        (True, 0),
        (float("nan"), 0),
    ])
    def test_coerce_score(self, value, expected):
        assert coerce_score(value) == expected

    @pytest.mark.parametrize("value, expected", [
        ("2024-01-15", "2024-01-15"),
        ("2024-01-15T00:00:00Z", "2024-01-15"),
        ("2024-03", "2024-03-01"),
        ("2026", "2026-01-01"),
        ("not_specified", NOT_SPECIFIED),
        ("N/A", NOT_SPECIFIED),
        ("next spring", NOT_SPECIFIED),
        (None, NOT_SPECIFIED),
        (20240115, NOT_SPECIFIED),
        ("2024-13-45", NOT_SPECIFIED),
        ("2023-02-29", NOT_SPECIFIED),
        ("2024-00", NOT_SPECIFIED),
        ("2024-02-29", "2024-02-29"),
    ])
    def test_date(self, value, expected):
        assert normalize_date(value, NOT_SPECIFIED) == expected

    def test_parties(self):
        assert normalize_parties([" Acme ", "", None, "Widget Co"]) == ["Acme", "Widget Co"]
        assert normalize_parties("Acme and Widget") == []

    def test_jurisdiction_summaries_from_list(self):
        summaries = normalize_jurisdiction_summaries([
            {"jurisdiction": "UK", "applicableLaws": "Consumer Rights Act", "riskLevel": "low"},
        ])
        assert list(summaries) == ["UK"]
        assert summaries["UK"].applicable_laws == ["Consumer Rights Act"]
        assert summaries["UK"].risk_level == "low"

    def test_list_summaries_without_string_jurisdiction_are_skipped(self):
        summaries = normalize_jurisdiction_summaries([
            {"jurisdiction": ["UK"], "keyFindings": ["Uncapped liability."]},
            {"keyFindings": ["No governing law."]},
            {"jurisdiction": "EU", "riskLevel": "medium"},
        ])
        assert list(summaries) == ["EU"]

    @pytest.mark.parametrize("value", [None, "not_applicable", {}, {"originalClause": "not_applicable"}])
    def test_missing_artifact(self, value):
        assert normalize_artifact(value) is None


class TestNormalizeAnalysis:

    def test_basic(self, make_payload):
        result = normalize_analysis(make_payload(complianceScore=90), "en", NOT_SPECIFIED)

        assert result.executive_summary.startswith("The lease")
        assert result.compliance_score == 90
        assert result.model_compliance_score == 90
        assert [f.risk_level for f in result.findings] == ["high", "medium", "low"]
        assert result.findings[0].clause_reference == "Clause 9.1"
        assert result.findings[2].clause_reference is None
        assert set(result.jurisdiction_summaries) == {"UK", "EU"}
        assert not result.performed_advanced_analysis
        assert result.effective_date is None

    def test_advanced_fields(self, make_payload):
        result = normalize_analysis(make_payload(advanced=True), "en", NOT_SPECIFIED, advanced=True)

        assert result.performed_advanced_analysis
        assert result.effective_date == "2024-01-15"
        assert result.termination_date == "2026-01-01"
        assert result.renewal_date == NOT_SPECIFIED
        assert result.parties == ["Acme Properties Ltd", "Widget Co"]
        assert result.redlined_clause_artifact.finding_id == "Unlimited tenant liability"

    def test_missing_executive_summary(self, make_payload):
        payload = make_payload()
        del payload["executiveSummary"]
        with pytest.raises(AnalysisError) as exc_info:
            normalize_analysis(payload, "en", NOT_SPECIFIED)
        assert exc_info.value.kind == AnalysisError.INVALID_MODEL_OUTPUT

    @pytest.mark.parametrize("findings", [5, "none", {"title": "Uncapped liability"}])
    def test_findings_must_be_a_list(self, make_payload, findings):
        with pytest.raises(AnalysisError) as exc_info:
            normalize_analysis(make_payload(findings=findings), "en", NOT_SPECIFIED)
        assert exc_info.value.kind == AnalysisError.INVALID_MODEL_OUTPUT

    def test_missing_findings(self, make_payload):
        payload = make_payload()
        del payload["findings"]
        assert normalize_analysis(payload, "en", NOT_SPECIFIED).findings == []

    def test_non_list_recommendations(self, make_payload):
        payload = make_payload(findings=[{"title": "t", "riskLevel": "high", "recommendations": 7}])
        assert normalize_analysis(payload, "en", NOT_SPECIFIED).findings[0].recommendations == []

    def test_unexpected_shape_is_invalid_output(self, make_payload, monkeypatch):
        def broken(value):
            raise TypeError("unhashable type: 'list'")

        monkeypatch.setattr(normalizer, "normalize_jurisdiction_summaries", broken)

        with pytest.raises(AnalysisError) as exc_info:
            normalize_analysis(make_payload(), "en", NOT_SPECIFIED)
        assert exc_info.value.kind == AnalysisError.INVALID_MODEL_OUTPUT

    def test_non_numeric_score(self, make_payload):
        result = normalize_analysis(make_payload(complianceScore="high"), "en", NOT_SPECIFIED)
        assert result.compliance_score == 0

    def test_demo(self):
        demo = normalize_demo({
            "executiveSummary": "Short preview.",
            "overallRiskLevel": "HIGH",
            "complianceScore": "n/a",
            "keyFindingTitle": "Unlimited liability",
            "parties": ["Acme"],
        }, NOT_SPECIFIED)

        assert demo.overall_risk_level == "none"
        assert demo.compliance_score == 0
        assert demo.effective_date == NOT_SPECIFIED
        assert demo.to_dict()["keyFindingTitle"] == "Unlimited liability"
