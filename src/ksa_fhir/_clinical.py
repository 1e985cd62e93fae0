"""
Clinical safety rules over extracted entities.

Two checks run over the medication and allergy subsets of a normalized
entity list:

  - drug interaction screening (``InteractionChecker``)
  - allergy conflict screening (``AllergyChecker``)

A ``RecommendationProvider`` may add guideline recommendations for the
document category.  All three are protocols so a terminology-backed
implementation can replace the reference ones without touching the
decision logic.

The reference checkers are heuristics, not medical knowledge:
``CountingInteractionChecker`` flags any list of more than two
medications, and ``NullAllergyChecker`` never reports a conflict.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence, runtime_checkable

from ksa_fhir._constants import INTERACTION_MEDICATION_THRESHOLD
from ksa_fhir._ids import stable_id
from ksa_fhir._models import (
    ClinicalDecision,
    DecisionSeverity,
    GuidelineReference,
    LocalizedText,
    MedicalEntity,
)


@dataclass(frozen=True)
class CheckOutcome:
    """Result of a single safety check.

    Attributes:
        flagged:  Whether the check found an issue.
        severity: Severity to report when flagged.
        message:  Bilingual description of the finding (or non-finding).
        evidence: Sources backing the finding.
    """

    flagged: bool
    message: LocalizedText
    severity: DecisionSeverity = "medium"
    evidence: tuple[str, ...] = field(default_factory=tuple)


# ═══════════════════════════════════════════════════════════════════
# PROTOCOLS
# ═══════════════════════════════════════════════════════════════════


@runtime_checkable
class InteractionChecker(Protocol):
    """Screens a medication list for drug-drug interactions."""

    def check(self, medications: Sequence[MedicalEntity]) -> CheckOutcome:
        ...


@runtime_checkable
class AllergyChecker(Protocol):
    """Screens medications against recorded allergies."""

    def check(
        self,
        medications: Sequence[MedicalEntity],
        allergies: Sequence[MedicalEntity],
    ) -> CheckOutcome:
        ...


@runtime_checkable
class RecommendationProvider(Protocol):
    """Supplies guideline-based recommendations for a document category.

    Implementations return ``ClinicalDecision`` records of type
    ``recommendation``; they are appended after the safety findings.
    """

    def recommend(
        self,
        entities: Sequence[MedicalEntity],
        category: str,
    ) -> Sequence[ClinicalDecision]:
        ...


# ═══════════════════════════════════════════════════════════════════
# REFERENCE CHECKERS
# ═══════════════════════════════════════════════════════════════════


class CountingInteractionChecker:
    """Flags a possible interaction whenever too many drugs are listed.

    Does not consult any interaction database.
    """

    def __init__(self, threshold: int = INTERACTION_MEDICATION_THRESHOLD) -> None:
        self.threshold = threshold

    def check(self, medications: Sequence[MedicalEntity]) -> CheckOutcome:
        if len(medications) > self.threshold:
            return CheckOutcome(
                flagged=True,
                severity="medium",
                message=LocalizedText(
                    en="Potential drug interaction detected",
                    ar="تم اكتشاف تفاعل محتمل بين الأدوية",
                ),
                evidence=("Clinical database", "Saudi guidelines"),
            )
        return CheckOutcome(
            flagged=False,
            message=LocalizedText(
                en="No drug interactions detected",
                ar="لم يتم اكتشاف تفاعلات دوائية",
            ),
        )


class NullAllergyChecker:
    """Never reports an allergy conflict."""

    def check(
        self,
        medications: Sequence[MedicalEntity],
        allergies: Sequence[MedicalEntity],
    ) -> CheckOutcome:
        return CheckOutcome(
            flagged=False,
            severity="high",
            message=LocalizedText(
                en="No allergy conflicts detected",
                ar="لم يتم اكتشاف تضارب في الحساسية",
            ),
        )


class NullRecommendationProvider:
    """Contributes no recommendations."""

    def recommend(
        self,
        entities: Sequence[MedicalEntity],
        category: str,
    ) -> Sequence[ClinicalDecision]:
        return ()


# ═══════════════════════════════════════════════════════════════════
# DECISION GENERATION
# ═══════════════════════════════════════════════════════════════════


INTERACTION_GUIDELINE = GuidelineReference(source="Saudi-MOH", title="Drug Interaction Guidelines")
ALLERGY_GUIDELINE = GuidelineReference(source="Saudi-MOH", title="Allergy Management Guidelines")


def _values(entities: Sequence[MedicalEntity]) -> list[str]:
    return [e.value for e in entities]


def generate_clinical_decisions(
    entities: Sequence[MedicalEntity],
    *,
    interaction_checker: Optional[InteractionChecker] = None,
    allergy_checker: Optional[AllergyChecker] = None,
    recommendation_provider: Optional[RecommendationProvider] = None,
    category: str = "",
) -> list[ClinicalDecision]:
    """Run the safety checks and turn findings into decisions.

    - The interaction checker always runs on the medication subset; a
      finding yields one ``alert`` decision with the checker's severity
      (``medium`` for the reference checker).
    - The allergy checker runs only when both medications and allergies
      are present; a finding yields one ``contraindication`` decision
      of severity ``high``.

    Both decisions require action and cite the Saudi MOH guideline for
    their topic.  Decision ids are digests of the entities involved.

    Recommendations from *recommendation_provider* follow the safety
    findings.

    Args:
        entities:            Normalized entities.
        interaction_checker: Defaults to ``CountingInteractionChecker()``.
        allergy_checker:     Defaults to ``NullAllergyChecker()``.
        recommendation_provider:
                             Defaults to ``NullRecommendationProvider()``.
        category:            Document category passed to the provider.

    Returns:
        Decisions in check order (interaction first, recommendations
        last).

    Raises:
        ValueError: If the provider returns a decision that is not a
            ``recommendation``.
    """
    interactions = interaction_checker or CountingInteractionChecker()
    allergy = allergy_checker or NullAllergyChecker()
    recommendations = recommendation_provider or NullRecommendationProvider()

    medications = [e for e in entities if e.type == "medication"]
    allergies = [e for e in entities if e.type == "allergy"]

    decisions: list[ClinicalDecision] = []

    outcome = interactions.check(medications)
    if outcome.flagged:
        decisions.append(ClinicalDecision(
            id=stable_id("interaction", _values(medications)),
            type="alert",
            severity=outcome.severity,
            message=outcome.message,
            evidence=tuple(outcome.evidence),
            action_required=True,
            guidelines=(INTERACTION_GUIDELINE,),
        ))

    if medications and allergies:
        outcome = allergy.check(medications, allergies)
        if outcome.flagged:
            decisions.append(ClinicalDecision(
                id=stable_id("allergy", _values(medications), _values(allergies)),
                type="contraindication",
                severity="high",
                message=outcome.message,
                evidence=tuple(outcome.evidence),
                action_required=True,
                guidelines=(ALLERGY_GUIDELINE,),
            ))

    for decision in recommendations.recommend(entities, category):
        if decision.type != "recommendation":
            raise ValueError(
                f"Recommendation provider returned a '{decision.type}' decision; "
                f"only 'recommendation' is allowed"
            )
        decisions.append(decision)

    return decisions
