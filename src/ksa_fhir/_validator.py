"""
Structural and resource-specific validation of built resources.

Validation never raises for resource defects: every finding becomes a
bilingual ``FHIRValidationError`` in the returned list.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from ksa_fhir._models import FHIRValidationError, LocalizedText

_Rule = Callable[[dict[str, Any]], list[FHIRValidationError]]


# ── Base rules ────────────────────────────────────────────────────


def _base_rules(resource: dict[str, Any]) -> list[FHIRValidationError]:
    errors: list[FHIRValidationError] = []

    if not resource.get("id"):
        errors.append(FHIRValidationError(
            path="id",
            message=LocalizedText(
                en="Resource ID is required",
                ar="معرف المورد مطلوب",
            ),
            severity="error",
        ))

    meta = resource.get("meta") or {}
    if not meta.get("lastUpdated"):
        errors.append(FHIRValidationError(
            path="meta.lastUpdated",
            message=LocalizedText(
                en="Last updated timestamp is required",
                ar="طابع زمني لآخر تحديث مطلوب",
            ),
            severity="warning",
        ))

    return errors


# ── Resource-specific rules ───────────────────────────────────────


def _patient_rules(resource: dict[str, Any]) -> list[FHIRValidationError]:
    if resource.get("name"):
        return []
    return [FHIRValidationError(
        path="name",
        message=LocalizedText(en="Patient name is required", ar="اسم المريض مطلوب"),
        severity="error",
    )]


def _medication_request_rules(resource: dict[str, Any]) -> list[FHIRValidationError]:
    if resource.get("subject"):
        return []
    return [FHIRValidationError(
        path="subject",
        message=LocalizedText(en="Patient reference is required", ar="مرجع المريض مطلوب"),
        severity="error",
    )]


def _observation_rules(resource: dict[str, Any]) -> list[FHIRValidationError]:
    if resource.get("code"):
        return []
    return [FHIRValidationError(
        path="code",
        message=LocalizedText(
            en="Observation code is missing",
            ar="رمز الملاحظة مفقود",
        ),
        severity="warning",
    )]


_RESOURCE_RULES: dict[str, _Rule] = {
    "Patient": _patient_rules,
    "MedicationRequest": _medication_request_rules,
    "Observation": _observation_rules,
}


# ═══════════════════════════════════════════════════════════════════
# PUBLIC API
# ═══════════════════════════════════════════════════════════════════


def validate_resource(
    resource: dict[str, Any],
    resource_type: Optional[str] = None,
) -> list[FHIRValidationError]:
    """Validate a FHIR resource and collect bilingual diagnostics.

    Base rules run for every resource:

    - missing ``id`` → error
    - missing ``meta.lastUpdated`` → warning

    Resource-specific rules:

    - Patient without a ``name`` entry → error
    - MedicationRequest without a ``subject`` reference → error
    - Observation without a ``code`` → warning

    Args:
        resource:      The resource to validate.
        resource_type: Shape to validate against; defaults to the
                       resource's own ``resourceType``.

    Returns:
        All diagnostics, base rules first.  Empty when the resource is
        clean.
    """
    shape = resource_type or resource.get("resourceType")
    errors = _base_rules(resource)
    rule = _RESOURCE_RULES.get(shape or "")
    if rule is not None:
        errors.extend(rule(resource))
    return errors
