"""
Report Generator for Contract Analysis Results

Renders a persisted AnalysisResult (and a single redlined clause artifact)
into standalone localized HTML. Rendering is pure: the same inputs always
produce byte-identical output, and no network or storage calls are made.
"""

import logging
from datetime import date
from html import escape
from typing import List, Optional
from urllib.parse import urlencode

from contract_analyser.analysis_agent.scoring import score_tier
from contract_analyser.shared.core.config import config
from contract_analyser.shared.models import AnalysisResult, RedlinedClauseArtifact, RiskLevel
from contract_analyser.shared.services.locale_service import get_locale_service

logger = logging.getLogger(__name__)

REPORT_CSS = """
body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; margin: 20px; }
h1, h2, h3, h4 { color: #0056b3; }
.container { max-width: 900px; margin: auto; background: #fff; padding: 30px; border-radius: 8px; box-shadow: 0 0 10px rgba(0,0,0,0.1); }
.section { margin-bottom: 20px; padding: 15px; border: 1px solid #eee; border-radius: 5px; }
.summary-box { background: #e6f7ff; border-left: 5px solid #007bff; padding: 15px; margin-bottom: 20px; }
.score-box { text-align: center; padding: 10px; border-radius: 5px; font-weight: bold; color: white; }
.score-high { background-color: #dc3545; }
.score-medium { background-color: #ffc107; }
.score-low { background-color: #17a2b8; }
.score-none { background-color: #28a745; }
.finding { border: 1px solid #ddd; padding: 10px; margin-bottom: 10px; border-radius: 5px; }
.finding-header { display: flex; justify-content: space-between; align-items: center; margin-bottom: 5px; }
.finding-title { font-weight: bold; color: #333; }
.risk-badge { padding: 3px 8px; border-radius: 12px; font-size: 0.8em; color: white; }
.risk-high { background-color: #dc3545; }
.risk-medium { background-color: #ffc107; }
.risk-low { background-color: #17a2b8; }
.risk-none { background-color: #28a745; }
ul { list-style-type: disc; margin-left: 20px; }
.jurisdiction-summary { border: 1px solid #cce5ff; background-color: #e0f2ff; padding: 15px; margin-bottom: 10px; border-radius: 5px; }
.jurisdiction-summary h4 { margin-top: 0; color: #0056b3; }
.footer { text-align: center; margin-top: 30px; font-size: 0.9em; color: #777; }
""".strip()

ARTIFACT_CSS = """
body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; margin: 20px; background-color: #f9f9f9; }
h1, h2, h3, h4 { color: #0056b3; margin-bottom: 15px; }
.container { max-width: 900px; margin: auto; background: #fff; padding: 30px; border-radius: 8px; box-shadow: 0 0 10px rgba(0,0,0,0.1); }
.section { margin-bottom: 20px; padding: 15px; border: 1px solid #ddd; border-radius: 5px; background-color: #fff; }
.section-title { font-size: 1.2em; font-weight: bold; margin-bottom: 10px; color: #333; }
.code-block { background-color: #f0f0f0; padding: 15px; border-radius: 4px; font-family: monospace; white-space: pre-wrap; word-break: break-word; border: 1px solid #ddd; }
.original-text { color: #555; }
.finding-id { font-size: 0.9em; color: #777; margin-top: 10px; }
.footer { text-align: center; margin-top: 30px; font-size: 0.9em; color: #777; }
""".strip()

RTL_LANGUAGES = ("ar",)


class ReportGenerator:
    """
    Localized HTML report renderer
    """

    def __init__(self, locale=None, viewer_base_url: str = None):
        """
        Args:
            locale: locale tables (default: shared LocaleService)
            viewer_base_url: base URL of the redlined artifact viewer
        """
        self.locale = locale or get_locale_service()
        self.viewer_base_url = (viewer_base_url or config.APP_BASE_URL).rstrip("/")

    def _t(self, key: str, language: str, **params) -> str:
        return escape(self.locale.translate(key, language, **params))

    def _risk_badge(self, risk_level: str, language: str) -> str:
        level = RiskLevel.normalize(risk_level)
        return f'<span class="risk-badge risk-{level}">{self._t(f"risk_{level}", language)}</span>'

    @staticmethod
    def _list(items: List[str]) -> List[str]:
        return ["<ul>"] + [f"<li>{escape(str(item))}</li>" for item in items] + ["</ul>"]

    def artifact_viewer_url(self, artifact_path: str, language: str) -> str:
        query = urlencode({"artifactPath": artifact_path, "lang": language})
        return f"{self.viewer_base_url}/view-redlined-artifact?{query}"

    def _document(self, language: str, title: str, css: str, body: List[str]) -> str:
        direction = ' dir="rtl"' if language in RTL_LANGUAGES else ""
        head = [
            "<!DOCTYPE html>",
            f'<html lang="{escape(language)}"{direction}>',
            "<head>",
            '<meta charset="UTF-8">',
            '<meta name="viewport" content="width=device-width, initial-scale=1.0">',
            f"<title>{title}</title>",
            f"<style>{css}</style>",
            "</head>",
            "<body>",
            '<div class="container">',
        ]
        return "\n".join(head + body + ["</div>", "</body>", "</html>"]) + "\n"

    def _footer(self, language: str, year: int) -> List[str]:
        return [
            '<div class="footer">',
            f"<p>{self._t('footer_copyright', language, year=year)}</p>",
            f"<p>{self._t('footer_disclaimer', language)}</p>",
            "</div>",
        ]

    def render_report(
        self,
        analysis_result: AnalysisResult,
        contract_name: str,
        output_language: str = "en",
        generated_on: Optional[date] = None,
    ) -> str:
        """
        Render the full analysis report

        Args:
            analysis_result: persisted analysis result
            contract_name: (translated) contract name for the header
            output_language: language of every label
            generated_on: header date when the result carries no analysis_date

        Returns:
            complete HTML document
        """
        lang = output_language or "en"
        report_date = analysis_result.analysis_date or generated_on or date.today()
        not_available = self._t("not_available", lang)
        score = analysis_result.compliance_score

        body = [
            f"<h1>{self._t('report_title', lang)}</h1>",
            f"<p><strong>{self._t('contract_name', lang)}:</strong> {escape(contract_name or '')}</p>",
            f"<p><strong>{self._t('analysis_date', lang)}:</strong> {report_date.isoformat()}</p>",
            '<div class="section summary-box">',
            f"<h2>{self._t('executive_summary', lang)}</h2>",
            f"<p>{escape(analysis_result.executive_summary)}</p>",
            "</div>",
            '<div class="section">',
            f"<h2>{self._t('compliance_score', lang)}</h2>",
            f'<div class="score-box score-{score_tier(score)}">{score}%</div>',
            f"<p>{self._t('score_description', lang)}</p>",
            "</div>",
        ]

        if analysis_result.data_protection_impact:
            body += [
                '<div class="section">',
                f"<h2>{self._t('data_protection_impact', lang)}</h2>",
                f"<p>{escape(analysis_result.data_protection_impact)}</p>",
                "</div>",
            ]

        if analysis_result.has_advanced_section:
            body += ['<div class="section advanced-analysis">', f"<h2>{self._t('advanced_analysis', lang)}</h2>"]
            fields = [
                ("effective_date", analysis_result.effective_date),
                ("termination_date", analysis_result.termination_date),
                ("renewal_date", analysis_result.renewal_date),
                ("contract_type", analysis_result.contract_type),
                ("contract_value", analysis_result.contract_value),
                ("parties", ", ".join(analysis_result.parties)),
                ("liability_cap_summary", analysis_result.liability_cap_summary),
                ("indemnification_clause_summary", analysis_result.indemnification_clause_summary),
                ("confidentiality_obligations_summary", analysis_result.confidentiality_obligations_summary),
            ]
            for key, value in fields:
                shown = escape(value) if value else not_available
                body.append(f"<p><strong>{self._t(key, lang)}:</strong> {shown}</p>")
            if analysis_result.redlined_clause_artifact_path:
                url = escape(self.artifact_viewer_url(analysis_result.redlined_clause_artifact_path, lang))
                body.append(
                    f'<p><a href="{url}" target="_blank" rel="noopener">'
                    f"{self._t('view_redlined_clause_artifact', lang)}</a></p>"
                )
            body.append("</div>")

        body += ['<div class="section">', f"<h2>{self._t('jurisdiction_summaries', lang)}</h2>"]
        if analysis_result.jurisdiction_summaries:
            for summary in analysis_result.jurisdiction_summaries.values():
                body += [
                    '<div class="jurisdiction-summary">',
                    f"<h4>{escape(self.locale.label('jurisdiction', summary.jurisdiction, lang))}</h4>",
                ]
                if summary.applicable_laws:
                    body.append(f"<strong>{self._t('applicable_laws', lang)}:</strong>")
                    body += self._list(summary.applicable_laws)
                if summary.key_findings:
                    body.append(f"<strong>{self._t('key_findings', lang)}:</strong>")
                    body += self._list(summary.key_findings)
                body += [
                    f"<strong>{self._t('risk_level', lang)}:</strong> "
                    f"{self._risk_badge(summary.risk_level, lang)}",
                    "</div>",
                ]
        else:
            body.append(f"<p>{self._t('no_jurisdiction_summaries', lang)}</p>")
        body.append("</div>")

        body += ['<div class="section">', f"<h2>{self._t('findings', lang)}</h2>"]
        if analysis_result.findings:
            for finding in analysis_result.findings:
                badge = "" if finding.risk_level == RiskLevel.NONE else self._risk_badge(finding.risk_level, lang)
                body += [
                    '<div class="finding">',
                    '<div class="finding-header">',
                    f'<span class="finding-title">{escape(finding.title)}</span>',
                ]
                if badge:
                    body.append(badge)
                body += [
                    "</div>",
                    f"<p><strong>{self._t('jurisdiction', lang)}:</strong> "
                    f"{escape(self.locale.label('jurisdiction', finding.jurisdiction, lang))}</p>",
                    f"<p><strong>{self._t('category', lang)}:</strong> "
                    f"{escape(self.locale.label('category', finding.category, lang))}</p>",
                ]
                if finding.clause_reference:
                    body.append(
                        f"<p><strong>{self._t('clause_reference', lang)}:</strong> "
                        f"{escape(finding.clause_reference)}</p>"
                    )
                body.append(f"<p>{escape(finding.description)}</p>")
                if finding.recommendations:
                    body.append(f"<strong>{self._t('recommendations', lang)}:</strong>")
                    body += self._list(finding.recommendations)
                body.append("</div>")
        else:
            body.append(f"<p>{self._t('no_findings', lang)}</p>")
        body.append("</div>")

        body += self._footer(lang, report_date.year)

        title = f"{self._t('report_title', lang)} - {escape(contract_name or '')}"
        logger.debug(f"Rendered report for {contract_name!r} ({lang}, {len(analysis_result.findings)} findings)")
        return self._document(lang, title, REPORT_CSS, body)

    def render_redlined_artifact(
        self,
        artifact: RedlinedClauseArtifact,
        output_language: str = "en",
        generated_on: Optional[date] = None,
    ) -> str:
        """Render one redlined clause artifact as a standalone HTML page"""
        lang = output_language or "en"
        year = (generated_on or date.today()).year
        not_available = self._t("not_available", lang)

        body = [f"<h1>{self._t('redlined_clause_artifact', lang)}</h1>"]
        if artifact.finding_id:
            body.append(
                f'<p class="finding-id">{self._t("associated_finding_id", lang)}: '
                f"{escape(artifact.finding_id)}</p>"
            )
        for key, value, css_class in (
            ("original_clause", artifact.original_clause, "code-block original-text"),
            ("redlined_version", artifact.redlined_version, "code-block"),
            ("suggested_revision", artifact.suggested_revision, "code-block"),
        ):
            body += [
                '<div class="section">',
                f'<div class="section-title">{self._t(key, lang)}</div>',
                f'<pre class="{css_class}">{escape(value) if value else not_available}</pre>',
                "</div>",
            ]
        body += self._footer(lang, year)

        return self._document(lang, self._t("redlined_clause_artifact_viewer", lang), ARTIFACT_CSS, body)
