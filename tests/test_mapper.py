"""Tests for map_to_fhir(): resource shape, profiles, entity dispatch,
extensions, validation and scoring working together.
"""

import copy
from datetime import datetime, timezone

import pytest

from ksa_fhir import (
    SAUDI_CODE_SYSTEMS,
    SAUDI_PROFILES,
    ConstructionFailure,
    DocumentMetadata,
    HealthcareDocument,
    MappingResult,
    create_base_resource,
    map_to_fhir,
)
from ksa_fhir._constants import (
    CONFIDENTIALITY_EXTENSION_URL,
    ICD_10,
    LOINC,
    SOURCE_SYSTEM,
)

UPLOADED = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


# ── Test helpers ──────────────────────────────────────────────────


def _doc(category="prescription", **overrides):
    fields = {
        "id": "doc-1",
        "category": category,
        "name": "scan.pdf",
        "uploaded_at": UPLOADED,
        "patient_id": "pat-1",
    }
    fields.update(overrides)
    return HealthcareDocument(**fields)


def _med(value="Paracetamol 500mg", code="PAR500", **extra):
    entity = {"type": "medication", "value": value}
    if code is not None:
        entity["code"] = {"system": "SFDA-MEDICATIONS", "code": code}
    entity.update(extra)
    return entity


# ═══════════════════════════════════════════════════════════════════
# Concrete scenarios
# ═══════════════════════════════════════════════════════════════════


class TestScenarios:

    def test_prescription_with_coded_medication(self):
        result = map_to_fhir(_doc(), [_med()])
        assert isinstance(result, MappingResult)
        assert result.resource["resourceType"] == "MedicationRequest"
        coding = result.resource["medicationCodeableConcept"]["coding"][0]
        assert coding["code"] == "PAR500"
        assert coding["system"] == SAUDI_CODE_SYSTEMS["SFDA-MEDICATIONS"]
        assert result.validation_errors == []
        assert result.mapping_quality == 100

    def test_lab_result_quantity(self):
        result = map_to_fhir(
            _doc("lab_results"),
            [{"type": "test_result", "value": "120 mmHg"}],
        )
        assert result.resource["component"][0]["valueQuantity"] == {
            "value": 120,
            "unit": "mmHg",
        }

    def test_missing_id_is_construction_failure(self):
        with pytest.raises(ConstructionFailure) as excinfo:
            map_to_fhir(_doc(id=None), [_med()])
        assert excinfo.value.field == "id"

    def test_missing_category_is_construction_failure(self):
        with pytest.raises(ConstructionFailure) as excinfo:
            map_to_fhir(_doc(category=None), [])
        assert excinfo.value.field == "category"

    def test_secret_confidentiality_extension_and_bonus(self):
        doc = _doc(
            "lab_results",
            uploaded_at=None,
            metadata=DocumentMetadata(confidentiality_level="secret"),
        )
        entities = [
            {"type": "test_result", "value": "Glucose 5.4 mmol"},
            {"type": "test_result", "value": "HbA1c 6.1 %"},
        ]
        result = map_to_fhir(doc, entities)

        conf = [e for e in result.extensions if e.url == CONFIDENTIALITY_EXTENSION_URL]
        assert len(conf) == 1
        assert conf[0].value_string == "secret"
        assert {"url": CONFIDENTIALITY_EXTENSION_URL, "valueString": "secret"} in result.resource["extension"]
        # 100 - 10 (lastUpdated warning) - 2 * 5 (uncoded) + 10 (extensions)
        assert result.mapping_quality == 90


# ═══════════════════════════════════════════════════════════════════
# Base resource
# ═══════════════════════════════════════════════════════════════════


class TestBaseResource:

    def test_identity_and_meta(self):
        resource = create_base_resource("DiagnosticReport", _doc("lab_results"))
        assert resource["id"] == "doc-1"
        assert resource["meta"]["lastUpdated"] == UPLOADED.isoformat()
        assert resource["identifier"] == [
            {"use": "usual", "system": SOURCE_SYSTEM, "value": "doc-1"}
        ]

    def test_subject_only_for_patient_scoped_types(self):
        assert create_base_resource("DiagnosticReport", _doc())["subject"] == {
            "reference": "Patient/pat-1"
        }
        assert "subject" not in create_base_resource("Claim", _doc())

    def test_requester_from_provider(self):
        resource = create_base_resource("MedicationRequest", _doc(provider_id="dr-7"))
        assert resource["requester"] == {"reference": "Practitioner/dr-7"}

    def test_no_last_updated_without_upload_time(self):
        resource = create_base_resource("Consent", _doc(uploaded_at=None))
        assert "lastUpdated" not in resource["meta"]


class TestProfiles:

    def test_registered_profile(self):
        result = map_to_fhir(_doc(), [])
        assert result.profile == SAUDI_PROFILES["MedicationRequest"]
        assert result.resource["meta"]["profile"] == [result.profile]

    def test_unregistered_type_has_no_profile(self):
        result = map_to_fhir(_doc("referral"), [])
        assert result.resource["resourceType"] == "ServiceRequest"
        assert result.profile is None
        assert "profile" not in result.resource["meta"]

    def test_override(self):
        custom = "http://example.org/StructureDefinition/MyMedReq"
        result = map_to_fhir(_doc(), [], profiles={"MedicationRequest": custom})
        assert result.profile == custom

    def test_unknown_category_fallback(self):
        result = map_to_fhir(_doc("fax"), [])
        assert result.resource["resourceType"] == "DocumentReference"
        assert result.validation_errors == []


# ═══════════════════════════════════════════════════════════════════
# Entity dispatch
# ═══════════════════════════════════════════════════════════════════


class TestMedication:

    def test_first_medication_wins(self):
        result = map_to_fhir(_doc(), [_med("Aspirin 81mg", "ASP81"), _med("Ibuprofen", "IBU")])
        concept = result.resource["medicationCodeableConcept"]
        assert concept["text"] == "Aspirin 81mg"

    def test_uncoded_medication(self):
        result = map_to_fhir(_doc(), [_med("Amoxicillin", code=None)])
        coding = result.resource["medicationCodeableConcept"]["coding"][0]
        assert coding["code"] == "unknown"
        assert coding["display"] == "Amoxicillin"

    def test_arabic_display_coding(self):
        result = map_to_fhir(_doc(), [_med(arabicTranslation="باراسيتامول")])
        codings = result.resource["medicationCodeableConcept"]["coding"]
        assert len(codings) == 2
        assert codings[1]["display"] == "باراسيتامول"
        assert codings[1]["extension"][0]["valueCoding"]["code"] == "ar-SA"

    def test_medication_ignored_outside_medication_request(self):
        result = map_to_fhir(_doc("clinical_note"), [_med()])
        assert "medicationCodeableConcept" not in result.resource

    def test_dosage_instruction(self):
        entities = [
            _med("Ibuprofen", "IBU"),
            {"type": "dosage", "value": "600mg"},
            {"type": "frequency", "value": "twice daily"},
        ]
        result = map_to_fhir(_doc(), entities)
        instruction = result.resource["dosageInstruction"][0]
        assert instruction["text"] == "600mg twice daily"
        assert instruction["timing"]["repeat"]["frequency"] == 2
        assert instruction["doseAndRate"][0]["doseQuantity"]["value"] == 600

    def test_no_dosage_instruction_for_other_types(self):
        result = map_to_fhir(_doc("clinical_note"), [{"type": "dosage", "value": "5mg"}])
        assert "dosageInstruction" not in result.resource


class TestClinicalFields:

    def test_diagnosis_and_condition(self):
        entities = [
            {"type": "diagnosis", "value": "Type 2 diabetes", "code": {"system": "ICD-10", "code": "E11"}},
            {"type": "condition", "value": "Hypertension"},
        ]
        result = map_to_fhir(_doc("discharge_summary"), entities)
        diagnoses = result.resource["diagnosis"]
        assert len(diagnoses) == 2
        first = diagnoses[0]["diagnosisCodeableConcept"]["coding"][0]
        assert first == {"system": ICD_10, "code": "E11", "display": "Type 2 diabetes"}
        assert diagnoses[1]["diagnosisCodeableConcept"]["coding"][0]["code"] == "unknown"

    def test_procedure(self):
        result = map_to_fhir(_doc("discharge_summary"), [{"type": "procedure", "value": "Appendectomy"}])
        coding = result.resource["procedure"][0]["procedureCodeableConcept"]["coding"][0]
        assert coding["system"] == SAUDI_CODE_SYSTEMS["MOH-PROCEDURES"]

    def test_non_numeric_vital_sign(self):
        result = map_to_fhir(_doc("lab_results"), [{"type": "vital_sign", "value": "regular pulse"}])
        component = result.resource["component"][0]
        assert component["valueString"] == "regular pulse"
        assert component["code"]["coding"][0]["system"] == LOINC
        assert "valueQuantity" not in component

    def test_types_without_field_are_ignored(self):
        entities = [
            {"type": "symptom", "value": "cough"},
            {"type": "body_part", "value": "chest"},
            {"type": "allergy", "value": "Penicillin"},
            {"type": "measurement", "value": "5 cm"},
        ]
        result = map_to_fhir(_doc("clinical_note"), entities)
        base = map_to_fhir(_doc("clinical_note"), [])
        assert result.resource == base.resource


# ═══════════════════════════════════════════════════════════════════
# Diagnostics and scoring
# ═══════════════════════════════════════════════════════════════════


class TestDiagnostics:

    def test_empty_entities_zero_diagnostics(self):
        result = map_to_fhir(_doc("clinical_note"), [])
        assert result.validation_errors == []
        assert result.mapping_quality == 100

    def test_prescription_without_patient(self):
        result = map_to_fhir(_doc(patient_id=None), [_med()])
        assert [e.path for e in result.validation_errors] == ["subject"]
        # 100 - 20 + 10
        assert result.mapping_quality == 90

    def test_skipped_entities_reported(self):
        entities = [_med(), {"type": "gene", "value": "BRCA1"}]
        result = map_to_fhir(_doc(), entities)
        assert len(result.skipped) == 1
        assert result.skipped[0].index == 1
        assert result.validation_errors == []

    def test_min_confidence(self):
        result = map_to_fhir(
            _doc(),
            [_med(confidence=0.2), _med("Aspirin", "ASP", confidence=0.9)],
            min_confidence=0.5,
        )
        assert result.resource["medicationCodeableConcept"]["text"] == "Aspirin"

    def test_quality_weight_override(self):
        result = map_to_fhir(
            _doc(patient_id=None),
            [_med()],
            quality_weights={"error": 50, "extension_bonus": 0},
        )
        assert result.mapping_quality == 50


class TestPurity:

    def test_input_not_mutated(self):
        entities = [_med(), {"type": "dosage", "value": "500mg"}]
        before = copy.deepcopy(entities)
        map_to_fhir(_doc(), entities)
        assert entities == before

    def test_deterministic(self):
        entities = [_med(), {"type": "frequency", "value": "once daily"}]
        a = map_to_fhir(_doc(), entities)
        b = map_to_fhir(_doc(), entities)
        assert a == b

    def test_extensions_not_accumulated(self):
        doc = _doc(facility_id="FAC-1")
        first = map_to_fhir(doc, [])
        second = map_to_fhir(doc, [])
        assert len(first.resource["extension"]) == 2
        assert len(second.resource["extension"]) == 2
        assert first.resource is not second.resource
