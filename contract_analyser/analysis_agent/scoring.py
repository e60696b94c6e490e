"""
Compliance scoring rule

Start at 100, deduct per finding by risk level, clamp to [0, 100] and round.
The model is asked to apply the same rule; ``check_score_conformance`` reports
(without correcting) a model score that disagrees with the recomputation.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from contract_analyser.shared.models import RiskLevel

logger = logging.getLogger(__name__)

RISK_DEDUCTIONS = {
    RiskLevel.HIGH: 15,
    RiskLevel.MEDIUM: 8,
    RiskLevel.LOW: 3,
    RiskLevel.NONE: 0,
}

# Score-box tiers, highest threshold first
SCORE_TIERS = (
    (80, RiskLevel.NONE),
    (60, RiskLevel.LOW),
    (40, RiskLevel.MEDIUM),
)


def _risk_of(finding) -> str:
    if isinstance(finding, str):
        return RiskLevel.normalize(finding)
    if isinstance(finding, dict):
        return RiskLevel.normalize(finding.get("riskLevel", finding.get("risk_level")))
    return RiskLevel.normalize(getattr(finding, "risk_level", None))


def recompute_compliance_score(findings: Iterable) -> int:
    """
    Deterministic score from a list of findings

    Accepts ``Finding`` objects, finding dicts, or bare risk-level strings.
    Unknown risk levels count as ``none``.
    """
    score = 100
    for finding in findings:
        score -= RISK_DEDUCTIONS[_risk_of(finding)]
    return int(round(min(100, max(0, score))))


@dataclass(frozen=True)
class ScoreConformance:
    reported: Optional[int]
    expected: int
    tolerance: int = 0

    @property
    def deviation(self) -> Optional[int]:
        if self.reported is None:
            return None
        return abs(self.reported - self.expected)

    @property
    def conforms(self) -> bool:
        return self.deviation is not None and self.deviation <= self.tolerance


def check_score_conformance(reported_score, findings: Iterable, tolerance: int = 0) -> ScoreConformance:
    """Compare a model-reported score with the recomputed one"""
    expected = recompute_compliance_score(findings)
    reported = reported_score if isinstance(reported_score, int) and not isinstance(reported_score, bool) else None
    result = ScoreConformance(reported=reported, expected=expected, tolerance=tolerance)
    if not result.conforms:
        logger.warning(f"Compliance score deviation: reported={reported_score}, expected={expected}")
    return result


def score_tier(score: int) -> str:
    """
    Risk tier of a compliance score: ``none`` (>=80), ``low`` (>=60),
    ``medium`` (>=40), otherwise ``high``
    """
    for threshold, tier in SCORE_TIERS:
        if score >= threshold:
            return tier
    return RiskLevel.HIGH
