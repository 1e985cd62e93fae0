"""Mapping-quality scoring."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from ksa_fhir._constants import DEFAULT_QUALITY_WEIGHTS
from ksa_fhir._models import FHIRValidationError, MedicalEntity


def calculate_mapping_quality(
    resource: dict[str, Any],
    entities: Sequence[MedicalEntity],
    errors: Sequence[FHIRValidationError],
    *,
    weights: Optional[dict[str, int]] = None,
) -> int:
    """Score how completely a resource captures its entities.

    Starts from 100 and applies, with the default weights:

    - −20 per error, −10 per warning, −5 per info diagnostic;
    - −5 per entity without a terminology ``code``;
    - +10 once when the resource carries any extension.

    The result is clamped to ``[0, 100]``.

    Args:
        resource: The mapped resource.
        entities: The normalized entities that were mapped.
        errors:   Diagnostics from ``validate_resource()``.
        weights:  Optional overrides merged over
                  ``DEFAULT_QUALITY_WEIGHTS``.

    Returns:
        Integer quality score in ``[0, 100]``.
    """
    w = {**DEFAULT_QUALITY_WEIGHTS, **(weights or {})}

    score = w["base"]
    for error in errors:
        score -= w[error.severity]

    score -= w["uncoded_entity"] * sum(1 for e in entities if e.code is None)

    if resource.get("extension"):
        score += w["extension_bonus"]

    return max(0, min(100, score))
