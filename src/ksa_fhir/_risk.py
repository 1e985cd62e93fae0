"""Overall risk assessment from clinical decisions."""

from __future__ import annotations

from typing import Sequence

from ksa_fhir._constants import MEDIUM_RISK_DECISION_COUNT, RISK_RULES
from ksa_fhir._models import ClinicalDecision, LocalizedText, RiskAssessment, RiskLevel

NO_ALERTS_FACTOR = LocalizedText(
    en="No clinical alerts raised",
    ar="لم يتم رصد تنبيهات سريرية",
)

EXPLANATION = LocalizedText(
    en="Risk assessment based on clinical analysis and Saudi healthcare guidelines.",
    ar="تقييم المخاطر بناءً على التحليل السريري والإرشادات الصحية السعودية.",
)


def _classify(decisions: Sequence[ClinicalDecision]) -> tuple[RiskLevel, int]:
    """Return the risk level and the decision count its score is based on."""
    critical = sum(1 for d in decisions if d.severity == "critical")
    if critical:
        return "critical", critical

    high = sum(1 for d in decisions if d.severity == "high")
    if high:
        return "high", high

    if len(decisions) > MEDIUM_RISK_DECISION_COUNT or any(
        d.severity == "medium" for d in decisions
    ):
        return "medium", len(decisions)

    return "low", len(decisions)


def assess_risk(decisions: Sequence[ClinicalDecision]) -> RiskAssessment:
    """Aggregate decisions into an overall risk level and score.

    ==========  =========================================  ==============
    Level       Condition                                  Score
    ==========  =========================================  ==============
    critical    any critical decision                      90 + 5·n_crit
    high        any high decision                          70 + 5·n_high
    medium      more than two decisions, or any medium     50 + 3·n
    low         otherwise                                  20 + 5·n
    ==========  =========================================  ==============

    Scores are clamped to ``[0, 100]``.  Each decision message becomes a
    risk factor; with no decisions a single "no alerts" factor is
    reported.
    """
    level, count = _classify(decisions)
    base, step = RISK_RULES[level]
    score = max(0, min(100, base + step * count))

    factors = tuple(d.message for d in decisions) or (NO_ALERTS_FACTOR,)

    return RiskAssessment(
        level=level,
        factors=factors,
        score=score,
        explanation=EXPLANATION,
    )
