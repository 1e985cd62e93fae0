"""
Healthcare document + entities → FHIR R4 resource.

Contains ``map_to_fhir()`` and ``create_base_resource()`` plus the
per-entity-type handlers (``_map_*``).  Dispatch goes through
``_ENTITY_HANDLERS``, which must cover every member of
``ENTITY_TYPES``; the module refuses to import otherwise, so adding an
entity type without deciding how it maps is caught immediately.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

import structlog

from ksa_fhir._constants import (
    BCP_47,
    DISPLAY_LANGUAGE_EXTENSION_URL,
    ENTITY_TYPES,
    ICD_10,
    LOINC,
    META_SOURCE,
    SAUDI_CODE_SYSTEMS,
    SAUDI_PROFILES,
    SOURCE_SYSTEM,
    SUBJECT_RESOURCE_TYPES,
)
from ksa_fhir._extensions import build_saudi_extensions
from ksa_fhir._models import (
    ConstructionFailure,
    HealthcareDocument,
    MappingResult,
    MedicalEntity,
)
from ksa_fhir._normalizer import EntityInput, normalize_entities
from ksa_fhir._quality import calculate_mapping_quality
from ksa_fhir._quantities import (
    create_dosage_timing,
    extract_numeric_value,
    parse_dosage_quantity,
)
from ksa_fhir._resolver import resolve_resource_type
from ksa_fhir._validator import validate_resource

logger = structlog.get_logger(__name__)

UNKNOWN_CODE = "unknown"


# ═══════════════════════════════════════════════════════════════════
# PUBLIC API
# ═══════════════════════════════════════════════════════════════════


def map_to_fhir(
    document: HealthcareDocument,
    entities: Sequence[EntityInput],
    *,
    profiles: Optional[dict[str, str]] = None,
    quality_weights: Optional[dict[str, int]] = None,
    min_confidence: float = 0.0,
) -> MappingResult:
    """Map a healthcare document and its entities to a FHIR resource.

    Pipeline:

    1. Normalize *entities* (malformed ones are skipped, not raised).
    2. Resolve the resource type from ``document.category``.
    3. Build the base resource and apply the jurisdiction profile.
    4. Dispatch every entity into its resource field.
    5. Attach the Saudi extensions.
    6. Validate and score.

    Args:
        document:        Source document; ``id`` and ``category`` are
                         mandatory.
        entities:        Extracted entities (``MedicalEntity`` or JSON
                         mappings).
        profiles:        Profile URL overrides merged over
                         ``SAUDI_PROFILES``.
        quality_weights: Scoring overrides merged over
                         ``DEFAULT_QUALITY_WEIGHTS``.
        min_confidence:  Entities below this confidence are skipped.

    Returns:
        A ``MappingResult`` owning a freshly built resource.

    Raises:
        ConstructionFailure: If ``document.id`` or ``document.category``
            is missing.  No partial result is produced.
    """
    for required in ("id", "category"):
        if not getattr(document, required):
            logger.error("construction_failed", missing=required, document_name=document.name)
            raise ConstructionFailure(required)

    cleaned, norm_report = normalize_entities(entities, min_confidence=min_confidence)

    resource_type = resolve_resource_type(document.category)
    resource = create_base_resource(resource_type, document)

    profile = {**SAUDI_PROFILES, **(profiles or {})}.get(resource_type)
    if profile:
        resource["meta"]["profile"] = [profile]

    _map_entities(resource, cleaned)

    extensions = build_saudi_extensions(document)
    if extensions:
        resource.setdefault("extension", []).extend(ext.to_fhir() for ext in extensions)

    errors = validate_resource(resource, resource_type)
    quality = calculate_mapping_quality(resource, cleaned, errors, weights=quality_weights)

    logger.info(
        "fhir_mapping_completed",
        document_id=document.id,
        resource_type=resource_type,
        entities=len(cleaned),
        skipped=len(norm_report.skipped),
        diagnostics=len(errors),
        mapping_quality=quality,
    )

    return MappingResult(
        resource=resource,
        profile=profile,
        validation_errors=errors,
        mapping_quality=quality,
        extensions=extensions,
        skipped=list(norm_report.skipped),
    )


def create_base_resource(
    resource_type: str,
    document: HealthcareDocument,
) -> dict[str, Any]:
    """Build the skeleton resource shared by every mapping.

    Carries the document id as the resource id (assigned here, once),
    the upload timestamp as ``meta.lastUpdated``, a usual identifier
    pointing back at the source system, and patient / provider
    references when the document has them.
    """
    meta: dict[str, Any] = {}
    if document.uploaded_at is not None:
        meta["lastUpdated"] = document.uploaded_at.isoformat()
    meta["source"] = META_SOURCE

    resource: dict[str, Any] = {
        "resourceType": resource_type,
        "id": document.id,
        "meta": meta,
        "identifier": [
            {
                "use": "usual",
                "system": SOURCE_SYSTEM,
                "value": document.id,
            }
        ],
    }

    if document.patient_id and resource_type in SUBJECT_RESOURCE_TYPES:
        resource["subject"] = {"reference": f"Patient/{document.patient_id}"}
    if document.provider_id and resource_type in ("MedicationRequest", "ServiceRequest"):
        resource["requester"] = {"reference": f"Practitioner/{document.provider_id}"}

    return resource


def code_system_uri(system: Optional[str], default: str) -> str:
    """Resolve a Saudi code-system key to its URI.

    Keys such as ``SFDA-MEDICATIONS`` map through
    ``SAUDI_CODE_SYSTEMS``; anything else is taken as-is.  A missing
    system falls back to *default*.
    """
    if not system:
        return default
    return SAUDI_CODE_SYSTEMS.get(system, system)


# ═══════════════════════════════════════════════════════════════════
# ENTITY DISPATCH
# ═══════════════════════════════════════════════════════════════════


@dataclass
class _DosageContext:
    """Dose and frequency text gathered while dispatching entities."""

    dosage: Optional[str] = None
    frequency: Optional[str] = None


_EntityHandler = Callable[[dict[str, Any], MedicalEntity, _DosageContext], None]


def _map_entities(resource: dict[str, Any], entities: Sequence[MedicalEntity]) -> None:
    ctx = _DosageContext()
    for entity in entities:
        _ENTITY_HANDLERS[entity.type](resource, entity, ctx)

    if resource["resourceType"] == "MedicationRequest" and (ctx.dosage or ctx.frequency):
        resource["dosageInstruction"] = [dosage_instruction(ctx.dosage, ctx.frequency)]


def dosage_instruction(dosage: Optional[str], frequency: Optional[str]) -> dict[str, Any]:
    """Build a FHIR ``Dosage`` from free-text dose and frequency."""
    instruction: dict[str, Any] = {
        "text": f"{dosage or 'As prescribed'} {frequency or ''}".strip(),
    }
    timing = create_dosage_timing(frequency)
    if timing is not None:
        instruction["timing"] = timing
    if dosage:
        instruction["doseAndRate"] = [{"doseQuantity": parse_dosage_quantity(dosage)}]
    return instruction


def medication_concept(entity: MedicalEntity) -> dict[str, Any]:
    """``medicationCodeableConcept`` for a medication entity.

    A second coding carries the Arabic display, tagged with the
    display-language extension, when the entity has a translation.
    """
    system = code_system_uri(
        entity.code.system if entity.code else None,
        SAUDI_CODE_SYSTEMS["SFDA-MEDICATIONS"],
    )
    code = entity.code.code if entity.code else UNKNOWN_CODE

    codings: list[dict[str, Any]] = [
        {"system": system, "code": code, "display": entity.value},
    ]
    if entity.arabic_value:
        codings.append({
            "system": system,
            "code": code,
            "display": entity.arabic_value,
            "extension": [
                {
                    "url": DISPLAY_LANGUAGE_EXTENSION_URL,
                    "valueCoding": {"system": BCP_47, "code": "ar-SA"},
                }
            ],
        })

    return {"coding": codings, "text": entity.value}


# ── Handlers ──────────────────────────────────────────────────────


def _map_medication(resource: dict[str, Any], entity: MedicalEntity, ctx: _DosageContext) -> None:
    # A MedicationRequest names one medication; the first entity wins.
    if resource["resourceType"] != "MedicationRequest" or "medicationCodeableConcept" in resource:
        return
    resource["medicationCodeableConcept"] = medication_concept(entity)


def _map_diagnosis(resource: dict[str, Any], entity: MedicalEntity, ctx: _DosageContext) -> None:
    resource.setdefault("diagnosis", []).append({
        "diagnosisCodeableConcept": {
            "coding": [
                {
                    "system": ICD_10,
                    "code": entity.code.code if entity.code else UNKNOWN_CODE,
                    "display": entity.value,
                }
            ]
        }
    })


def _map_procedure(resource: dict[str, Any], entity: MedicalEntity, ctx: _DosageContext) -> None:
    resource.setdefault("procedure", []).append({
        "procedureCodeableConcept": {
            "coding": [
                {
                    "system": SAUDI_CODE_SYSTEMS["MOH-PROCEDURES"],
                    "code": entity.code.code if entity.code else UNKNOWN_CODE,
                    "display": entity.value,
                }
            ]
        }
    })


def _map_observation(resource: dict[str, Any], entity: MedicalEntity, ctx: _DosageContext) -> None:
    component: dict[str, Any] = {
        "code": {
            "coding": [
                {
                    "system": LOINC,
                    "code": entity.code.code if entity.code else UNKNOWN_CODE,
                    "display": entity.value,
                }
            ]
        }
    }
    quantity = extract_numeric_value(entity.value)
    if quantity is not None:
        component["valueQuantity"] = quantity
    else:
        component["valueString"] = entity.value
    resource.setdefault("component", []).append(component)


def _collect_dosage(resource: dict[str, Any], entity: MedicalEntity, ctx: _DosageContext) -> None:
    if ctx.dosage is None:
        ctx.dosage = entity.value


def _collect_frequency(resource: dict[str, Any], entity: MedicalEntity, ctx: _DosageContext) -> None:
    if ctx.frequency is None:
        ctx.frequency = entity.value


def _no_field(resource: dict[str, Any], entity: MedicalEntity, ctx: _DosageContext) -> None:
    """Entity types with no target field in the resource."""


_ENTITY_HANDLERS: dict[str, _EntityHandler] = {
    "medication": _map_medication,
    "diagnosis": _map_diagnosis,
    "condition": _map_diagnosis,
    "procedure": _map_procedure,
    "vital_sign": _map_observation,
    "test_result": _map_observation,
    "dosage": _collect_dosage,
    "frequency": _collect_frequency,
    "symptom": _no_field,
    "body_part": _no_field,
    "allergy": _no_field,
    "measurement": _no_field,
}

_unhandled = ENTITY_TYPES - _ENTITY_HANDLERS.keys()
if _unhandled:
    raise RuntimeError(f"No FHIR mapping handler for entity types: {sorted(_unhandled)}")
