"""
HTML report renderer tests
"""

from datetime import date

import pytest

from contract_analyser.report_agent.generator import ReportGenerator
from contract_analyser.shared.models import (
    AnalysisResult,
    Finding,
    JurisdictionSummary,
    RedlinedClauseArtifact,
)


def _result(**overrides):
    fields = dict(
        executive_summary="Balanced lease with one uncapped liability clause.",
        compliance_score=82,
        findings=[
            Finding(
                title="Unlimited liability",
                description="Tenant liability is uncapped.",
                risk_level="high",
                jurisdiction="UK",
                category="risk",
                recommendations=["Add a cap."],
                clause_reference="Clause 9.1",
            ),
            Finding(
                title="Informational note",
                description="Governing law is stated.",
                risk_level="none",
                jurisdiction="Islamic Law",
                category="data-protection",
            ),
        ],
        jurisdiction_summaries={
            "UK": JurisdictionSummary(
                jurisdiction="UK",
                applicable_laws=["Landlord and Tenant Act 1985"],
                key_findings=["Liability is uncapped."],
                risk_level="high",
            ),
        },
        data_protection_impact="Minimal personal data.",
        analysis_date=date(2024, 5, 1),
    )
    fields.update(overrides)
    return AnalysisResult(**fields)


class TestRenderReport:

    @pytest.fixture(autouse=True)
    def setup(self):
        self.generator = ReportGenerator(viewer_base_url="https://app.test")

    def test_rendering_is_deterministic(self):
        first = self.generator.render_report(_result(), "Office Lease", "en")
        second = self.generator.render_report(_result(), "Office Lease", "en")
        assert first == second

    def test_score_box_tier(self):
        html = self.generator.render_report(_result(compliance_score=82), "Lease", "en")
        assert 'class="score-box score-none"' in html
        assert ">82%<" in html

        html = self.generator.render_report(_result(compliance_score=35), "Lease", "en")
        assert 'class="score-box score-high"' in html

    def test_header(self):
        html = self.generator.render_report(_result(), "Office <Lease>", "en")
        assert "Office &lt;Lease&gt;" in html
        assert "2024-05-01" in html
        assert "© 2024" in html

    def test_data_protection_section_is_optional(self):
        with_dpi = self.generator.render_report(_result(), "Lease", "en")
        without_dpi = self.generator.render_report(_result(data_protection_impact=None), "Lease", "en")

        assert "Minimal personal data." in with_dpi
        assert "Data Protection Impact" in with_dpi
        assert "Data Protection Impact" not in without_dpi

    def test_no_risk_badge_for_none_findings(self):
        html = self.generator.render_report(_result(), "Lease", "en")
        assert 'class="risk-badge risk-high"' in html
        assert 'class="risk-badge risk-none"' not in html

    def test_labels_are_localized(self):
        html = self.generator.render_report(_result(), "Bail", "fr")
        assert 'lang="fr"' in html
        assert "Rapport d&#x27;analyse de contrat" in html
        assert "Royaume-Uni" in html
        assert "Droit islamique" in html
        assert "Protection des données" in html

    def test_unknown_jurisdiction_renders_raw_value(self):
        result = _result(findings=[
            Finding(title="Local rule", description="d", risk_level="low", jurisdiction="Mars Colony"),
        ])
        html = self.generator.render_report(result, "Lease", "es")
        assert "Mars Colony" in html

    def test_arabic_is_right_to_left(self):
        html = self.generator.render_report(_result(), "Lease", "ar")
        assert '<html lang="ar" dir="rtl">' in html

    def test_empty_sections(self):
        html = self.generator.render_report(_result(findings=[], jurisdiction_summaries={}), "Lease", "en")
        assert "No detailed findings available." in html
        assert 'class="finding"' not in html
        assert 'class="jurisdiction-summary"' not in html

    def test_advanced_section_hidden_for_basic_analysis(self):
        html = self.generator.render_report(_result(), "Lease", "en")
        assert "advanced-analysis" not in html

    def test_advanced_section(self):
        result = _result(
            performed_advanced_analysis=True,
            effective_date="2024-01-15",
            termination_date="Not specified",
            parties=["Acme Properties Ltd", "Widget Co"],
            contract_type="Commercial lease",
            redlined_clause_artifact_path="u1/c1/redlined_clause_c1.json",
        )
        html = self.generator.render_report(result, "Lease", "en")

        assert "advanced-analysis" in html
        assert "Acme Properties Ltd, Widget Co" in html
        assert "2024-01-15" in html
        assert "https://app.test/view-redlined-artifact?artifactPath=u1%2Fc1%2Fredlined_clause_c1.json&amp;lang=en" in html

    def test_artifact_path_alone_shows_advanced_section(self):
        html = self.generator.render_report(
            _result(redlined_clause_artifact_path="u1/c1/redlined_clause_c1.json"), "Lease", "en"
        )
        assert "advanced-analysis" in html

    def test_generated_on_used_when_result_has_no_date(self):
        html = self.generator.render_report(
            _result(analysis_date=None), "Lease", "en", generated_on=date(2023, 2, 3)
        )
        assert "2023-02-03" in html


class TestRenderRedlinedArtifact:

    def test_render(self):
        artifact = RedlinedClauseArtifact(
            original_clause="The Tenant shall be liable for all losses.",
            redlined_version="The Tenant shall be liable for direct losses.",
            suggested_revision=None,
            finding_id="finding-1",
        )
        html = ReportGenerator().render_redlined_artifact(artifact, "en", generated_on=date(2024, 1, 1))

        assert "The Tenant shall be liable for all losses." in html
        assert "finding-1" in html
        assert "N/A" in html
        assert "© 2024" in html
