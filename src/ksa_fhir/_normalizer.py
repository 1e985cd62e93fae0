"""
Entity normalization.

Cleans the extractor's entity list before mapping: malformed entries
are dropped (never raised) and recorded as ``SkippedEntity`` audit
records, exact duplicates are collapsed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence, Union

import structlog

from ksa_fhir._constants import ENTITY_TYPES
from ksa_fhir._models import EntityPosition, MedicalEntity, SkippedEntity

logger = structlog.get_logger(__name__)

EntityInput = Union[MedicalEntity, Mapping[str, Any]]


@dataclass
class NormalizationReport:
    """Audit trail for entity normalization.

    Attributes:
        total_input:       Number of entities received.
        kept:              Number of entities in the cleaned list.
        duplicates:        Number of exact duplicates removed.
        skipped:           Entities dropped as malformed, in input order.
    """

    total_input: int = 0
    kept: int = 0
    duplicates: int = 0
    skipped: list[SkippedEntity] = field(default_factory=list)


def _rejection_reason(entity: MedicalEntity, min_confidence: float) -> str | None:
    # Entities built directly (not via from_dict) are not type-checked.
    if not isinstance(entity.type, str) or not isinstance(entity.value, str):
        return "entity type and value must be strings"
    if entity.type not in ENTITY_TYPES:
        return f"unknown entity type '{entity.type}'"
    if not isinstance(entity.position, EntityPosition):
        return f"invalid position {entity.position!r}"
    start, end = entity.position.start, entity.position.end
    if not isinstance(start, int) or not isinstance(end, int):
        return f"non-integer position ({start!r}, {end!r})"
    if isinstance(entity.confidence, bool) or not isinstance(entity.confidence, (int, float)):
        return f"non-numeric confidence {entity.confidence!r}"
    if start < 0 or end < 0:
        return f"negative position ({start}, {end})"
    if start > end:
        return f"position start {start} is after end {end}"
    if not (0.0 <= entity.confidence <= 1.0):
        return f"confidence {entity.confidence} outside [0, 1]"
    if entity.confidence < min_confidence:
        return f"confidence {entity.confidence} below minimum {min_confidence}"
    return None


def normalize_entities(
    entities: Sequence[EntityInput],
    *,
    min_confidence: float = 0.0,
) -> tuple[list[MedicalEntity], NormalizationReport]:
    """Validate and de-duplicate an extracted entity list.

    Each input is either a ``MedicalEntity`` or a mapping in the
    extractor's JSON shape.  An entity is dropped when:

    1. the mapping cannot be coerced into a ``MedicalEntity``, or a
       field has the wrong type (e.g. a non-string ``type``);
    2. its type is not one of ``ENTITY_TYPES``;
    3. its position has a negative offset or ``start > end``;
    4. its confidence lies outside ``[0, 1]`` or below *min_confidence*.

    Entities identical on ``(type, value, position)`` are collapsed to
    the first occurrence.  Output order follows input order.  The input
    sequence is not modified.

    Args:
        entities:       Raw entity list from the extraction collaborator.
        min_confidence: Optional confidence floor (default 0.0 keeps all
                        well-formed entities).

    Returns:
        Tuple of ``(cleaned_entities, NormalizationReport)``.

    Raises:
        ValueError: If *min_confidence* is outside ``[0.0, 1.0]``.
    """
    if not (0.0 <= min_confidence <= 1.0):
        raise ValueError(
            f"min_confidence must be in [0.0, 1.0], got {min_confidence}"
        )

    report = NormalizationReport(total_input=len(entities))
    cleaned: list[MedicalEntity] = []
    seen: set[tuple[str, str, int, int]] = set()

    for index, raw in enumerate(entities):
        if isinstance(raw, MedicalEntity):
            entity = raw
        else:
            try:
                entity = MedicalEntity.from_dict(raw)
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                _skip(report, index, f"malformed entity: {exc!r}", raw)
                continue

        reason = _rejection_reason(entity, min_confidence)
        if reason is not None:
            _skip(report, index, reason, entity)
            continue

        key = (entity.type, entity.value, entity.position.start, entity.position.end)
        if key in seen:
            report.duplicates += 1
            continue
        seen.add(key)
        cleaned.append(entity)

    report.kept = len(cleaned)
    return cleaned, report


def _skip(report: NormalizationReport, index: int, reason: str, entity: Any) -> None:
    report.skipped.append(SkippedEntity(index=index, reason=reason, entity=entity))
    logger.warning("entity_skipped", index=index, reason=reason)
