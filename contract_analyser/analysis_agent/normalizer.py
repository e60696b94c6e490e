"""
Model output parsing and normalization

Raw model JSON never leaves this module: it is parsed, coerced into the
shared dataclasses and validated here.
"""

import json
import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional

from contract_analyser.shared.core.errors import AnalysisError
from contract_analyser.shared.models import (
    AnalysisResult,
    DemoAnalysis,
    Finding,
    JurisdictionSummary,
    RedlinedClauseArtifact,
    RiskLevel,
)

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\s*\n?|```", re.IGNORECASE)
_FULL_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_YEAR_MONTH = re.compile(r"^(\d{4})-(\d{2})$")
_YEAR = re.compile(r"^(\d{4})$")

# Values the model uses to mean "no date" / "no artifact"
_MISSING_MARKERS = {"", "not_specified", "not specified", "n/a", "none", "null", "unknown"}


def parse_model_output(raw: Optional[str]) -> Dict[str, Any]:
    """
    Parse model text into a JSON object, stripping Markdown code fences

    Raises:
        AnalysisError: empty_model_output, or invalid_model_output when the
            text is not JSON or not a JSON object
    """
    if raw is None or not raw.strip():
        raise AnalysisError("No content received from the language model",
                            kind=AnalysisError.EMPTY_MODEL_OUTPUT)

    cleaned = _CODE_FENCE.sub("", raw).strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"Model output is not valid JSON: {e}; head={cleaned[:200]!r}")
        raise AnalysisError("Failed to parse model response as JSON",
                            kind=AnalysisError.INVALID_MODEL_OUTPUT) from e

    if not isinstance(data, dict):
        raise AnalysisError(f"Expected a JSON object, got {type(data).__name__}",
                            kind=AnalysisError.INVALID_MODEL_OUTPUT)
    return data


def normalize_risk_level(value) -> str:
    """Exact match against the four levels; anything else is ``none``."""
    return RiskLevel.normalize(value)


def coerce_score(value) -> int:
    """Numeric scores are rounded and clamped to [0, 100]; anything else is 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if value != value:  # NaN
        return 0
    return int(round(min(100, max(0, value))))


def _checked_date(text: str, year: str, month: str, day: str, not_specified: str) -> str:
    try:
        return date(int(year), int(month), int(day)).isoformat()
    except ValueError:
        logger.debug(f"Impossible date {text!r}; using sentinel")
        return not_specified


def normalize_date(value, not_specified: str) -> str:
    """
    ISO date or the locale sentinel

    Year-only values become January 1st, year+month values the 1st of the month.
    """
    if not isinstance(value, str):
        return not_specified
    text = value.strip()
    if text.lower() in _MISSING_MARKERS or text == not_specified:
        return not_specified

    match = _FULL_DATE.match(text)
    if match:
        return _checked_date(text, *match.groups(), not_specified=not_specified)
    match = _YEAR_MONTH.match(text)
    if match:
        return _checked_date(text, *match.groups(), "01", not_specified=not_specified)
    match = _YEAR.match(text)
    if match:
        return f"{match.group(1)}-01-01"

    logger.debug(f"Unrecognized date value {text!r}; using sentinel")
    return not_specified


def normalize_parties(value) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(party).strip() for party in value if isinstance(party, str) and party.strip()]


def _string_list(value) -> List[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None and str(item).strip()]


def _optional_text(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() in ("not_specified", "not_applicable"):
        return None
    return text


def normalize_finding(data) -> Optional[Finding]:
    if not isinstance(data, dict):
        return None
    return Finding(
        title=str(data.get("title") or "").strip(),
        description=str(data.get("description") or "").strip(),
        risk_level=normalize_risk_level(data.get("riskLevel")),
        jurisdiction=str(data.get("jurisdiction") or "Others").strip(),
        category=str(data.get("category") or "risk").strip(),
        recommendations=_string_list(data.get("recommendations")),
        clause_reference=_optional_text(data.get("clauseReference")),
        id=data.get("id"),
    )


def normalize_jurisdiction_summaries(value) -> Dict[str, JurisdictionSummary]:
    """
    Accepts the keyed object form or a list of summaries

    List entries without a string ``jurisdiction`` are skipped.
    """
    summaries = {}
    if isinstance(value, list):
        value = {
            item["jurisdiction"]: item
            for item in value
            if isinstance(item, dict) and isinstance(item.get("jurisdiction"), str)
        }
    if not isinstance(value, dict):
        return summaries
    for key, data in value.items():
        if not isinstance(data, dict):
            continue
        jurisdiction = data.get("jurisdiction")
        summaries[str(key)] = JurisdictionSummary(
            jurisdiction=jurisdiction if isinstance(jurisdiction, str) and jurisdiction else str(key),
            applicable_laws=_string_list(data.get("applicableLaws")),
            key_findings=_string_list(data.get("keyFindings")),
            risk_level=normalize_risk_level(data.get("riskLevel")),
        )
    return summaries


def normalize_artifact(value) -> Optional[RedlinedClauseArtifact]:
    """``not_applicable`` / null / empty objects mean no artifact"""
    if not isinstance(value, dict):
        return None
    artifact = RedlinedClauseArtifact(
        original_clause=_optional_text(value.get("originalClause")),
        redlined_version=_optional_text(value.get("redlinedVersion")),
        suggested_revision=_optional_text(value.get("suggestedRevision")),
        finding_id=_optional_text(value.get("findingId")),
    )
    if not (artifact.original_clause or artifact.redlined_version or artifact.suggested_revision):
        return None
    return artifact


def normalize_analysis(data: Dict[str, Any], output_language: str, not_specified: str,
                       advanced: bool = False) -> AnalysisResult:
    """
    Build an ``AnalysisResult`` from parsed model JSON

    ``compliance_score`` is set from the model's score here; the caller decides
    whether to replace it with the recomputed value.

    Raises:
        AnalysisError: invalid_model_output when the executive summary is missing
            or the JSON does not have the expected shape
    """
    try:
        return _build_analysis(data, output_language, not_specified, advanced)
    except (TypeError, AttributeError, ValueError) as e:
        logger.error(f"Model output has an unexpected shape: {e!r}")
        raise AnalysisError(f"Unexpected model response structure: {e}",
                            kind=AnalysisError.INVALID_MODEL_OUTPUT) from e


def _build_analysis(data: Dict[str, Any], output_language: str, not_specified: str,
                    advanced: bool) -> AnalysisResult:
    executive_summary = data.get("executiveSummary")
    if not isinstance(executive_summary, str) or not executive_summary.strip():
        raise AnalysisError("Model response has no executive summary",
                            kind=AnalysisError.INVALID_MODEL_OUTPUT)

    raw_findings = data.get("findings")
    if raw_findings is None:
        raw_findings = []
    if not isinstance(raw_findings, list):
        raise AnalysisError("Model response findings is not a list",
                            kind=AnalysisError.INVALID_MODEL_OUTPUT)
    findings = [f for f in (normalize_finding(item) for item in raw_findings) if f is not None]
    model_score = coerce_score(data.get("complianceScore"))

    result = AnalysisResult(
        executive_summary=executive_summary.strip(),
        compliance_score=model_score,
        model_compliance_score=model_score,
        findings=findings,
        jurisdiction_summaries=normalize_jurisdiction_summaries(data.get("jurisdictionSummaries")),
        data_protection_impact=_optional_text(data.get("dataProtectionImpact")),
        output_language=output_language,
    )

    if advanced:
        result.performed_advanced_analysis = True
        result.effective_date = normalize_date(data.get("effectiveDate"), not_specified)
        result.termination_date = normalize_date(data.get("terminationDate"), not_specified)
        result.renewal_date = normalize_date(data.get("renewalDate"), not_specified)
        result.contract_type = _optional_text(data.get("contractType"))
        result.contract_value = _optional_text(data.get("contractValue"))
        result.parties = normalize_parties(data.get("parties"))
        result.liability_cap_summary = _optional_text(data.get("liabilityCapSummary"))
        result.indemnification_clause_summary = _optional_text(data.get("indemnificationClauseSummary"))
        result.confidentiality_obligations_summary = _optional_text(data.get("confidentialityObligationsSummary"))
        result.redlined_clause_artifact = normalize_artifact(data.get("redlinedClauseArtifact"))

    return result


def normalize_demo(data: Dict[str, Any], not_specified: str) -> DemoAnalysis:
    return DemoAnalysis(
        executive_summary=str(data.get("executiveSummary") or "").strip(),
        overall_risk_level=normalize_risk_level(data.get("overallRiskLevel")),
        compliance_score=coerce_score(data.get("complianceScore")),
        key_finding_title=_optional_text(data.get("keyFindingTitle")),
        key_finding_description=_optional_text(data.get("keyFindingDescription")),
        effective_date=normalize_date(data.get("effectiveDate"), not_specified),
        termination_date=normalize_date(data.get("terminationDate"), not_specified),
        contract_type=_optional_text(data.get("contractType")),
        parties=normalize_parties(data.get("parties")),
        liability_cap_summary=_optional_text(data.get("liabilityCapSummary")),
    )
