"""
Example 01: Prescription → Saudi MedicationRequest
==================================================

Maps an uploaded Arabic/English prescription and the entities an
extractor found in it to a Saudi-profile FHIR R4 MedicationRequest,
then prints the diagnostics, the quality score and the JSON-LD
expansion of the resource.
"""

import json
from datetime import datetime, timezone

from ksa_fhir import (
    DocumentMetadata,
    HealthcareDocument,
    HealthcareFHIREngine,
    configure_logging,
    expand_resource,
)

configure_logging("INFO")

engine = HealthcareFHIREngine()

# ── 1. The uploaded document ─────────────────────────────────────

document = HealthcareDocument(
    id="rx-2024-00017",
    category="prescription",
    name="prescription_scan.pdf",
    uploaded_at=datetime(2024, 3, 14, 10, 5, tzinfo=timezone.utc),
    facility_id="MOH-RIYADH-042",
    patient_id="pat-1029",
    provider_id="dr-331",
    metadata=DocumentMetadata(language="ar"),
)

# ── 2. Entities as returned by the extractor ─────────────────────

entities = [
    {
        "type": "medication",
        "value": "Amoxicillin 500mg",
        "arabicTranslation": "أموكسيسيلين ٥٠٠ ملغ",
        "confidence": 0.96,
        "position": {"start": 12, "end": 29},
        "code": {"system": "SFDA-MEDICATIONS", "code": "AMX500"},
    },
    {"type": "dosage", "value": "500mg", "confidence": 0.91, "position": {"start": 24, "end": 29}},
    {"type": "frequency", "value": "مرتين يومياً", "confidence": 0.88, "position": {"start": 31, "end": 43}},
    {"type": "symptom", "value": "sore throat", "confidence": 0.7, "position": {"start": 50, "end": 61}},
    # Dropped by normalization: unknown type.
    {"type": "signature", "value": "Dr. K.", "confidence": 0.99},
]

# ── 3. Map ───────────────────────────────────────────────────────

print("=== Mapping ===\n")

result = engine.map(document, entities)

print(json.dumps(result.resource, indent=2, ensure_ascii=False))
print(f"\nProfile:         {result.profile}")
print(f"Mapping quality: {result.mapping_quality}")
print(f"Skipped:         {[(s.index, s.reason) for s in result.skipped]}")
for diag in result.validation_errors:
    print(f"  [{diag.severity}] {diag.path}: {diag.message.en} / {diag.message.ar}")

# ── 4. JSON-LD ───────────────────────────────────────────────────

print("\n=== JSON-LD expansion ===\n")

expanded = expand_resource(result.resource)
print(json.dumps(expanded[0]["@type"]))
print(f"{len(expanded[0])} expanded properties")
