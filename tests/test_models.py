"""Tests for the value objects in ksa_fhir._models."""

import pytest

from ksa_fhir import (
    ClinicalDecision,
    ConstructionFailure,
    EntityPosition,
    FHIRValidationError,
    LocalizedText,
    MedicalEntity,
    RiskAssessment,
    SaudiExtension,
)


def _text():
    return LocalizedText(en="Something", ar="شيء ما")


class TestLocalizedText:

    def test_both_languages_required(self):
        with pytest.raises(ValueError, match="ar"):
            LocalizedText(en="Hello", ar="  ")
        with pytest.raises(ValueError, match="en"):
            LocalizedText(en="", ar="مرحبا")

    def test_rejects_non_string(self):
        with pytest.raises(TypeError, match="str"):
            LocalizedText(en=None, ar="مرحبا")

    def test_get_by_language(self):
        text = LocalizedText(en="Hello", ar="مرحبا")
        assert text.get("ar") == "مرحبا"
        assert text.get("en") == "Hello"
        assert text.get("mixed") == "Hello"

    def test_frozen(self):
        text = _text()
        with pytest.raises(AttributeError):
            text.en = "Other"


class TestMedicalEntityFromDict:

    def test_minimal_mapping(self):
        entity = MedicalEntity.from_dict({"type": "symptom", "value": "headache"})
        assert entity.type == "symptom"
        assert entity.confidence == 0.8
        assert entity.position == EntityPosition(0, len("headache"))
        assert entity.translation is None
        assert entity.code is None

    def test_translation_and_code(self):
        entity = MedicalEntity.from_dict({
            "type": "medication",
            "value": "Paracetamol 500mg",
            "arabicTranslation": "باراسيتامول ٥٠٠ ملغ",
            "confidence": 0.95,
            "position": {"start": 4, "end": 21},
            "code": {"system": "SFDA-MEDICATIONS", "code": "PAR500"},
        })
        assert entity.arabic_value == "باراسيتامول ٥٠٠ ملغ"
        assert entity.translation.en == "Paracetamol 500mg"
        assert entity.code.code == "PAR500"
        assert entity.code.display == ""
        assert entity.position == EntityPosition(4, 21)

    def test_missing_type_raises_key_error(self):
        with pytest.raises(KeyError):
            MedicalEntity.from_dict({"value": "x"})

    def test_non_string_value_raises_type_error(self):
        with pytest.raises(TypeError, match="str"):
            MedicalEntity.from_dict({"type": "symptom", "value": 42})


class TestSaudiExtension:

    def test_exactly_one_value(self):
        with pytest.raises(ValueError, match="exactly one value"):
            SaudiExtension(url="http://example.org/ext")
        with pytest.raises(ValueError, match="exactly one value"):
            SaudiExtension(url="http://example.org/ext", value_string="a", value_boolean=True)

    def test_to_fhir_string(self):
        ext = SaudiExtension(url="http://example.org/ext", value_string="secret")
        assert ext.to_fhir() == {"url": "http://example.org/ext", "valueString": "secret"}

    def test_to_fhir_boolean_false_is_a_value(self):
        ext = SaudiExtension(url="http://example.org/ext", value_boolean=False)
        assert ext.to_fhir() == {"url": "http://example.org/ext", "valueBoolean": False}

    def test_to_fhir_coding_is_copied(self):
        coding = {"system": "urn:ietf:bcp:47", "code": "ar-SA"}
        ext = SaudiExtension(url="http://example.org/ext", value_coding=coding)
        rendered = ext.to_fhir()
        rendered["valueCoding"]["code"] = "en-US"
        assert coding["code"] == "ar-SA"


class TestDiagnostics:

    def test_validation_error_to_dict(self):
        err = FHIRValidationError(
            path="id",
            message=LocalizedText(en="Resource ID is required", ar="معرف المورد مطلوب"),
        )
        assert err.to_dict() == {
            "path": "id",
            "message": "Resource ID is required",
            "arabicMessage": "معرف المورد مطلوب",
            "severity": "error",
        }

    def test_unknown_severity(self):
        with pytest.raises(ValueError, match="severity"):
            FHIRValidationError(path="id", message=_text(), severity="fatal")

    def test_unknown_decision_type(self):
        with pytest.raises(ValueError, match="decision type"):
            ClinicalDecision(id="d1", type="note", severity="low", message=_text())

    def test_risk_score_bounds(self):
        with pytest.raises(ValueError, match="score"):
            RiskAssessment(level="low", factors=(), score=101, explanation=_text())
        with pytest.raises(ValueError, match="level"):
            RiskAssessment(level="severe", factors=(), score=10, explanation=_text())


class TestConstructionFailure:

    def test_is_value_error_with_field(self):
        exc = ConstructionFailure("category")
        assert isinstance(exc, ValueError)
        assert exc.field == "category"
        assert "category" in str(exc)
