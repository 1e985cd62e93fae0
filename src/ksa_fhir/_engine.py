"""
Engine façade.

``HealthcareFHIREngine`` bundles the configuration of every component
into one immutable service value.  Construct it once at start-up and
pass it to whatever needs it; it keeps no per-call state, so a single
instance is safe to share across threads.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from types import MappingProxyType
from typing import Iterable, Optional, Sequence

import structlog

from ksa_fhir._clinical import (
    AllergyChecker,
    CountingInteractionChecker,
    InteractionChecker,
    NullAllergyChecker,
    NullRecommendationProvider,
    RecommendationProvider,
    generate_clinical_decisions,
)
from ksa_fhir._compliance import ComplianceCheck, assess_saudi_compliance
from ksa_fhir._mapper import map_to_fhir
from ksa_fhir._models import AnalysisResult, HealthcareDocument, MappingResult
from ksa_fhir._normalizer import EntityInput, normalize_entities
from ksa_fhir._risk import assess_risk

logger = structlog.get_logger(__name__)


class HealthcareFHIREngine:
    """Stateless mapping, clinical-rules and compliance engine.

    Args:
        profiles:            Profile URL overrides (see ``map_to_fhir``).
        quality_weights:     Quality scoring overrides.
        interaction_checker: Drug interaction strategy; defaults to
                             ``CountingInteractionChecker``.
        allergy_checker:     Allergy conflict strategy; defaults to
                             ``NullAllergyChecker``.
        recommendation_provider:
                             Guideline recommendations; defaults to
                             ``NullRecommendationProvider``.
        compliance_checks:   Compliance check overrides by name.
        min_confidence:      Entities below this confidence are skipped.

    Raises:
        ValueError: If *min_confidence* is outside ``[0.0, 1.0]``.
    """

    def __init__(
        self,
        *,
        profiles: Optional[dict[str, str]] = None,
        quality_weights: Optional[dict[str, int]] = None,
        interaction_checker: Optional[InteractionChecker] = None,
        allergy_checker: Optional[AllergyChecker] = None,
        recommendation_provider: Optional[RecommendationProvider] = None,
        compliance_checks: Optional[dict[str, ComplianceCheck]] = None,
        min_confidence: float = 0.0,
    ) -> None:
        if not (0.0 <= min_confidence <= 1.0):
            raise ValueError(
                f"min_confidence must be in [0.0, 1.0], got {min_confidence}"
            )
        self._profiles = MappingProxyType(dict(profiles or {}))
        self._quality_weights = MappingProxyType(dict(quality_weights or {}))
        self._interaction_checker = interaction_checker or CountingInteractionChecker()
        self._allergy_checker = allergy_checker or NullAllergyChecker()
        self._recommendation_provider = recommendation_provider or NullRecommendationProvider()
        self._compliance_checks = MappingProxyType(dict(compliance_checks or {}))
        self._min_confidence = min_confidence

    # ── Mapping ──────────────────────────────────────────────────

    def map(
        self,
        document: HealthcareDocument,
        entities: Sequence[EntityInput],
    ) -> MappingResult:
        """Map *document* and *entities* to a validated FHIR resource.

        Raises:
            ConstructionFailure: If the document has no id or category.
        """
        return map_to_fhir(
            document,
            entities,
            profiles=dict(self._profiles),
            quality_weights=dict(self._quality_weights),
            min_confidence=self._min_confidence,
        )

    def map_many(
        self,
        items: Iterable[tuple[HealthcareDocument, Sequence[EntityInput]]],
        *,
        max_workers: Optional[int] = None,
    ) -> list[MappingResult]:
        """Map independent documents in parallel.

        Results are returned in input order.  The first
        ``ConstructionFailure`` is re-raised once all submitted mappings
        have finished.
        """
        pairs = list(items)
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = [pool.submit(self.map, doc, ents) for doc, ents in pairs]
            return [f.result() for f in futures]

    # ── Analysis ─────────────────────────────────────────────────

    def analyze(
        self,
        document: HealthcareDocument,
        entities: Sequence[EntityInput],
        content: str,
    ) -> AnalysisResult:
        """Run clinical rules, risk assessment and compliance checks.

        Entities are normalized first, so malformed ones never reach the
        clinical rules.  *content* is the raw document text used by the
        compliance checks; it is required because blank content fails
        the MOH check.
        """
        cleaned, _ = normalize_entities(entities, min_confidence=self._min_confidence)

        decisions = generate_clinical_decisions(
            cleaned,
            interaction_checker=self._interaction_checker,
            allergy_checker=self._allergy_checker,
            recommendation_provider=self._recommendation_provider,
            category=document.category or "",
        )
        risk = assess_risk(decisions)
        compliance = assess_saudi_compliance(
            content,
            document.category or "",
            checks=dict(self._compliance_checks),
        )

        logger.info(
            "clinical_analysis_completed",
            document_id=document.id,
            decisions=len(decisions),
            risk_level=risk.level,
            risk_score=risk.score,
            moh_approval=compliance.moh_approval,
        )

        return AnalysisResult(
            decisions=tuple(decisions),
            risk=risk,
            compliance=compliance,
        )
