"""
Shared constants, lookup tables, and default configuration.

All profile URLs, terminology systems, extension URLs, category tables
and scoring weights used across the package are centralised here so
the component modules stay free of literals and circular imports.
Callers override the dict-valued defaults through keyword arguments;
the tables in this module are never mutated at runtime.
"""

from __future__ import annotations

# ── Namespace constants ────────────────────────────────────────────

FHIR = "http://hl7.org/fhir/"

UCUM = "http://unitsofmeasure.org"

LOINC = "http://loinc.org"

ICD_10 = "http://hl7.org/fhir/sid/icd-10"

BCP_47 = "urn:ietf:bcp:47"

SOURCE_SYSTEM = "http://docsmart.ai/fhir/identifier"
"""Identifier system of the document store the resources originate from."""

META_SOURCE = "BrainSAIT-DocSmart-AI"

# ── Saudi profiles ─────────────────────────────────────────────────
#
# Resource types with a registered jurisdiction profile.  Types absent
# from this table (ServiceRequest, ImagingStudy, ...) are emitted as
# plain FHIR R4 and get no meta.profile entry.

SAUDI_PROFILES: dict[str, str] = {
    "Patient": "http://saudi.moh.gov.sa/fhir/StructureDefinition/Patient",
    "Practitioner": "http://saudi.moh.gov.sa/fhir/StructureDefinition/Practitioner",
    "Organization": "http://saudi.moh.gov.sa/fhir/StructureDefinition/Organization",
    "MedicationRequest": "http://saudi.moh.gov.sa/fhir/StructureDefinition/MedicationRequest",
    "Observation": "http://saudi.moh.gov.sa/fhir/StructureDefinition/Observation",
    "DiagnosticReport": "http://saudi.moh.gov.sa/fhir/StructureDefinition/DiagnosticReport",
    "Encounter": "http://saudi.moh.gov.sa/fhir/StructureDefinition/Encounter",
    "Claim": "http://nphies.sa/fhir/StructureDefinition/Claim",
    "Coverage": "http://nphies.sa/fhir/StructureDefinition/Coverage",
}

SAUDI_CODE_SYSTEMS: dict[str, str] = {
    "MOH-PROCEDURES": "http://saudi.moh.gov.sa/terminology/CodeSystem/procedures",
    "MOH-DIAGNOSES": "http://saudi.moh.gov.sa/terminology/CodeSystem/diagnoses",
    "SFDA-MEDICATIONS": "http://sfda.gov.sa/terminology/CodeSystem/medications",
    "NPHIES-SERVICES": "http://nphies.sa/terminology/CodeSystem/services",
    "SAUDI-IDENTIFIERS": "http://saudi.moh.gov.sa/terminology/CodeSystem/identifiers",
}

# ── Extension URLs ─────────────────────────────────────────────────

_SD = "http://saudi.moh.gov.sa/fhir/StructureDefinition/"

FACILITY_EXTENSION_URL = _SD + "facility-identifier"
LANGUAGE_EXTENSION_URL = _SD + "document-language"
CONFIDENTIALITY_EXTENSION_URL = _SD + "confidentiality-level"
DISPLAY_LANGUAGE_EXTENSION_URL = _SD + "display-language"
NAME_LANGUAGE_EXTENSION_URL = _SD + "name-language"

NATIONAL_ID_SYSTEM = "http://saudi.gov.sa/id/national-id"
IQAMA_SYSTEM = "http://saudi.gov.sa/id/iqama"

# ── Document categories ────────────────────────────────────────────

CATEGORY_RESOURCE_TYPES: dict[str, str] = {
    "prescription": "MedicationRequest",
    "lab_results": "DiagnosticReport",
    "radiology": "ImagingStudy",
    "referral": "ServiceRequest",
    "insurance_claim": "Claim",
    "approval": "Coverage",
    "medical_history": "Condition",
    "consent_form": "Consent",
    "vaccination_record": "Immunization",
    "discharge_summary": "Encounter",
    "clinical_note": "DocumentReference",
    "dicom_image": "ImagingStudy",
    "hl7_message": "Bundle",
}

DOCUMENT_CATEGORIES = frozenset(CATEGORY_RESOURCE_TYPES)

FALLBACK_RESOURCE_TYPE = "DocumentReference"

CATEGORY_CONFIDENTIALITY: dict[str, str] = {
    "prescription": "confidential",
    "lab_results": "confidential",
    "radiology": "confidential",
    "medical_history": "secret",
    "clinical_note": "confidential",
    "referral": "restricted",
    "insurance_claim": "restricted",
    "approval": "restricted",
    "consent_form": "restricted",
    "vaccination_record": "restricted",
    "discharge_summary": "confidential",
    "dicom_image": "confidential",
    "hl7_message": "confidential",
}

FALLBACK_CONFIDENTIALITY = "restricted"

# Resource types that carry a ``subject`` reference to the patient.
SUBJECT_RESOURCE_TYPES = frozenset({
    "MedicationRequest",
    "DiagnosticReport",
    "ImagingStudy",
    "ServiceRequest",
    "Condition",
    "Encounter",
    "DocumentReference",
    "Observation",
})

# ── Entity types ───────────────────────────────────────────────────

ENTITY_TYPES = frozenset({
    "medication",
    "dosage",
    "frequency",
    "condition",
    "symptom",
    "procedure",
    "diagnosis",
    "body_part",
    "vital_sign",
    "allergy",
    "test_result",
    "measurement",
})

# ── Quality scoring ────────────────────────────────────────────────

DEFAULT_QUALITY_WEIGHTS: dict[str, int] = {
    "base": 100,
    "error": 20,
    "warning": 10,
    "info": 5,
    "uncoded_entity": 5,
    "extension_bonus": 10,
}
"""Deductions and bonus applied by ``calculate_mapping_quality()``."""

# ── Risk scoring ───────────────────────────────────────────────────
#
# (base, per-decision increment) per risk level.  Critical and high
# count only decisions of that severity; medium and low count all
# decisions.

RISK_RULES: dict[str, tuple[int, int]] = {
    "critical": (90, 5),
    "high": (70, 5),
    "medium": (50, 3),
    "low": (20, 5),
}

MEDIUM_RISK_DECISION_COUNT = 2
"""More decisions than this escalate the overall level to medium."""

INTERACTION_MEDICATION_THRESHOLD = 2
"""More medications than this trigger the default interaction alert."""
