"""
Shared data models for the contract analysis pipeline

Every stage (analysis engine, report renderer, delivery dispatcher) works on
these structures instead of raw model JSON.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional


class RiskLevel:
    """Enumerated risk levels; anything else normalizes to ``NONE``."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"

    ALL = (HIGH, MEDIUM, LOW, NONE)

    @classmethod
    def normalize(cls, value) -> str:
        if isinstance(value, str) and value in cls.ALL:
            return value
        return cls.NONE


FINDING_CATEGORIES = (
    "compliance",
    "risk",
    "data-protection",
    "enforceability",
    "drafting",
    "commercial",
)

JURISDICTIONS = ("UK", "EU", "Ireland", "US", "Canada", "Australia", "Islamic Law", "Others")


@dataclass
class Finding:
    """
    A single risk/compliance finding

    Attributes:
        title: short heading
        description: explanation in the output language
        risk_level: one of ``RiskLevel.ALL``
        jurisdiction: jurisdiction name (e.g. "UK")
        category: finding category (e.g. "data-protection")
        recommendations: ordered remediation steps
        clause_reference: quoted clause text, if any
    """
    title: str
    description: str
    risk_level: str = RiskLevel.NONE
    jurisdiction: str = "Others"
    category: str = "risk"
    recommendations: List[str] = field(default_factory=list)
    clause_reference: Optional[str] = None
    id: Optional[str] = None

    def __post_init__(self):
        self.risk_level = RiskLevel.normalize(self.risk_level)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "riskLevel": self.risk_level,
            "jurisdiction": self.jurisdiction,
            "category": self.category,
            "recommendations": list(self.recommendations),
            "clauseReference": self.clause_reference,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Finding":
        return cls(
            id=data.get("id"),
            title=data.get("title") or "",
            description=data.get("description") or "",
            risk_level=data.get("riskLevel", data.get("risk_level")),
            jurisdiction=data.get("jurisdiction") or "Others",
            category=data.get("category") or "risk",
            recommendations=list(data.get("recommendations") or []),
            clause_reference=data.get("clauseReference", data.get("clause_reference")),
        )


@dataclass
class JurisdictionSummary:
    """Per-jurisdiction roll-up of laws, findings and risk"""
    jurisdiction: str
    applicable_laws: List[str] = field(default_factory=list)
    key_findings: List[str] = field(default_factory=list)
    risk_level: str = RiskLevel.NONE

    def __post_init__(self):
        self.risk_level = RiskLevel.normalize(self.risk_level)

    def to_dict(self) -> dict:
        return {
            "jurisdiction": self.jurisdiction,
            "applicableLaws": list(self.applicable_laws),
            "keyFindings": list(self.key_findings),
            "riskLevel": self.risk_level,
        }

    @classmethod
    def from_dict(cls, key: str, data: dict) -> "JurisdictionSummary":
        return cls(
            jurisdiction=data.get("jurisdiction") or key,
            applicable_laws=list(data.get("applicableLaws") or []),
            key_findings=list(data.get("keyFindings") or []),
            risk_level=data.get("riskLevel"),
        )


@dataclass
class RedlinedClauseArtifact:
    """Redlined version of the most significant high-risk clause"""
    original_clause: Optional[str] = None
    redlined_version: Optional[str] = None
    suggested_revision: Optional[str] = None
    finding_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "originalClause": self.original_clause,
            "redlinedVersion": self.redlined_version,
            "suggestedRevision": self.suggested_revision,
            "findingId": self.finding_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RedlinedClauseArtifact":
        return cls(
            original_clause=data.get("originalClause"),
            redlined_version=data.get("redlinedVersion"),
            suggested_revision=data.get("suggestedRevision"),
            finding_id=data.get("findingId"),
        )


@dataclass
class AnalysisResult:
    """
    Structured, normalized analysis of one contract

    ``compliance_score`` is always an integer in [0, 100]. Date fields hold an
    ISO date string or the locale's "not specified" sentinel.
    """
    executive_summary: str
    compliance_score: int
    findings: List[Finding] = field(default_factory=list)
    jurisdiction_summaries: Dict[str, JurisdictionSummary] = field(default_factory=dict)
    data_protection_impact: Optional[str] = None

    # Advanced analysis fields
    performed_advanced_analysis: bool = False
    effective_date: Optional[str] = None
    termination_date: Optional[str] = None
    renewal_date: Optional[str] = None
    contract_type: Optional[str] = None
    contract_value: Optional[str] = None
    parties: List[str] = field(default_factory=list)
    liability_cap_summary: Optional[str] = None
    indemnification_clause_summary: Optional[str] = None
    confidentiality_obligations_summary: Optional[str] = None
    redlined_clause_artifact: Optional[RedlinedClauseArtifact] = None
    redlined_clause_artifact_path: Optional[str] = None

    # Score reported by the model, kept for conformance checks
    model_compliance_score: Optional[int] = None
    output_language: str = "en"
    analysis_date: Optional[date] = None
    id: Optional[str] = None

    def __post_init__(self):
        if not 0 <= self.compliance_score <= 100:
            raise ValueError(f"Compliance score must be between 0 and 100, got {self.compliance_score}")

    @property
    def has_advanced_section(self) -> bool:
        """Advanced block is shown when the analysis ran or an artifact exists."""
        return self.performed_advanced_analysis or bool(self.redlined_clause_artifact_path)

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            "id": self.id,
            "executiveSummary": self.executive_summary,
            "dataProtectionImpact": self.data_protection_impact,
            "complianceScore": self.compliance_score,
            "modelComplianceScore": self.model_compliance_score,
            "findings": [f.to_dict() for f in self.findings],
            "jurisdictionSummaries": {
                key: summary.to_dict() for key, summary in self.jurisdiction_summaries.items()
            },
            "performedAdvancedAnalysis": self.performed_advanced_analysis,
            "effectiveDate": self.effective_date,
            "terminationDate": self.termination_date,
            "renewalDate": self.renewal_date,
            "contractType": self.contract_type,
            "contractValue": self.contract_value,
            "parties": list(self.parties),
            "liabilityCapSummary": self.liability_cap_summary,
            "indemnificationClauseSummary": self.indemnification_clause_summary,
            "confidentialityObligationsSummary": self.confidentiality_obligations_summary,
            "redlinedClauseArtifact": (
                self.redlined_clause_artifact.to_dict() if self.redlined_clause_artifact else None
            ),
            "redlinedClauseArtifactPath": self.redlined_clause_artifact_path,
            "outputLanguage": self.output_language,
            "analysisDate": self.analysis_date.isoformat() if self.analysis_date else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AnalysisResult":
        """Create AnalysisResult from a dictionary produced by ``to_dict``"""
        analysis_date = data.get("analysisDate")
        if isinstance(analysis_date, str):
            analysis_date = date.fromisoformat(analysis_date)

        artifact = data.get("redlinedClauseArtifact")

        return cls(
            id=data.get("id"),
            executive_summary=data.get("executiveSummary") or "",
            data_protection_impact=data.get("dataProtectionImpact"),
            compliance_score=int(data.get("complianceScore", 0)),
            model_compliance_score=data.get("modelComplianceScore"),
            findings=[Finding.from_dict(f) for f in data.get("findings") or []],
            jurisdiction_summaries={
                key: JurisdictionSummary.from_dict(key, value)
                for key, value in (data.get("jurisdictionSummaries") or {}).items()
            },
            performed_advanced_analysis=bool(data.get("performedAdvancedAnalysis", False)),
            effective_date=data.get("effectiveDate"),
            termination_date=data.get("terminationDate"),
            renewal_date=data.get("renewalDate"),
            contract_type=data.get("contractType"),
            contract_value=data.get("contractValue"),
            parties=list(data.get("parties") or []),
            liability_cap_summary=data.get("liabilityCapSummary"),
            indemnification_clause_summary=data.get("indemnificationClauseSummary"),
            confidentiality_obligations_summary=data.get("confidentialityObligationsSummary"),
            redlined_clause_artifact=RedlinedClauseArtifact.from_dict(artifact) if isinstance(artifact, dict) else None,
            redlined_clause_artifact_path=data.get("redlinedClauseArtifactPath"),
            output_language=data.get("outputLanguage") or "en",
            analysis_date=analysis_date,
        )


@dataclass
class DemoAnalysis:
    """Short preview analysis; never persisted"""
    executive_summary: str
    overall_risk_level: str
    compliance_score: int
    key_finding_title: Optional[str] = None
    key_finding_description: Optional[str] = None
    effective_date: Optional[str] = None
    termination_date: Optional[str] = None
    contract_type: Optional[str] = None
    parties: List[str] = field(default_factory=list)
    liability_cap_summary: Optional[str] = None

    def __post_init__(self):
        self.overall_risk_level = RiskLevel.normalize(self.overall_risk_level)

    def to_dict(self) -> dict:
        return {
            "executiveSummary": self.executive_summary,
            "overallRiskLevel": self.overall_risk_level,
            "keyFindingTitle": self.key_finding_title,
            "keyFindingDescription": self.key_finding_description,
            "complianceScore": self.compliance_score,
            "effectiveDate": self.effective_date,
            "terminationDate": self.termination_date,
            "contractType": self.contract_type,
            "parties": list(self.parties),
            "liabilityCapSummary": self.liability_cap_summary,
        }
