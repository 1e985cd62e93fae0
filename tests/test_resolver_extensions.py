"""Tests for category resolution and the Saudi extension builder."""

import pytest

from ksa_fhir import (
    CATEGORY_RESOURCE_TYPES,
    DocumentMetadata,
    HealthcareDocument,
    build_saudi_extensions,
    default_confidentiality,
    resolve_resource_type,
)
from ksa_fhir._constants import (
    CONFIDENTIALITY_EXTENSION_URL,
    FACILITY_EXTENSION_URL,
    LANGUAGE_EXTENSION_URL,
)


def _doc(**overrides):
    fields = {"id": "doc-1", "category": "prescription"}
    fields.update(overrides)
    return HealthcareDocument(**fields)


class TestResolveResourceType:

    @pytest.mark.parametrize("category,expected", sorted(CATEGORY_RESOURCE_TYPES.items()))
    def test_known_categories(self, category, expected):
        assert resolve_resource_type(category) == expected

    def test_spot_checks(self):
        assert resolve_resource_type("prescription") == "MedicationRequest"
        assert resolve_resource_type("lab_results") == "DiagnosticReport"
        assert resolve_resource_type("dicom_image") == "ImagingStudy"

    def test_unknown_falls_back(self):
        assert resolve_resource_type("fax_cover_sheet") == "DocumentReference"
        assert resolve_resource_type(None) == "DocumentReference"


class TestDefaultConfidentiality:

    def test_per_category(self):
        assert default_confidentiality("medical_history") == "secret"
        assert default_confidentiality("prescription") == "confidential"
        assert default_confidentiality("insurance_claim") == "restricted"

    def test_unknown(self):
        assert default_confidentiality("other") == "restricted"


class TestBuildSaudiExtensions:

    def test_confidentiality_always_present(self):
        exts = build_saudi_extensions(_doc())
        assert [e.url for e in exts] == [CONFIDENTIALITY_EXTENSION_URL]
        assert exts[0].value_string == "confidential"

    def test_explicit_confidentiality_wins(self):
        doc = _doc(metadata=DocumentMetadata(confidentiality_level="secret"))
        exts = build_saudi_extensions(doc)
        assert exts[-1].value_string == "secret"

    def test_full_order(self):
        doc = _doc(
            facility_id="FAC-001",
            metadata=DocumentMetadata(language="ar"),
        )
        exts = build_saudi_extensions(doc)
        assert [e.url for e in exts] == [
            FACILITY_EXTENSION_URL,
            LANGUAGE_EXTENSION_URL,
            CONFIDENTIALITY_EXTENSION_URL,
        ]
        assert exts[0].value_string == "FAC-001"
        assert exts[1].value_coding["code"] == "ar-SA"

    def test_mixed_language_tagged_english(self):
        exts = build_saudi_extensions(_doc(metadata=DocumentMetadata(language="mixed")))
        assert exts[0].value_coding["code"] == "en-US"

    def test_pure(self):
        doc = _doc(facility_id="FAC-001")
        assert build_saudi_extensions(doc) == build_saudi_extensions(doc)
