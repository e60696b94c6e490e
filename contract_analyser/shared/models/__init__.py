"""
Shared data models for the contract analysis pipeline
"""

from .analysis_models import (
    RiskLevel,
    FINDING_CATEGORIES,
    JURISDICTIONS,
    Finding,
    JurisdictionSummary,
    RedlinedClauseArtifact,
    AnalysisResult,
    DemoAnalysis,
)
from .delivery_models import DeliverySettings

__all__ = [
    "RiskLevel",
    "FINDING_CATEGORIES",
    "JURISDICTIONS",
    "Finding",
    "JurisdictionSummary",
    "RedlinedClauseArtifact",
    "AnalysisResult",
    "DemoAnalysis",
    "DeliverySettings",
]
