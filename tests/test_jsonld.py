"""Tests for JSON-LD rendering of mapped resources (PyLD)."""

from datetime import datetime, timezone

import pytest

from ksa_fhir import (
    FHIR_JSONLD_CONTEXT,
    HealthcareDocument,
    expand_resource,
    map_to_fhir,
    resource_to_jsonld,
)

FHIR = "http://hl7.org/fhir/"


class TestResourceToJsonld:

    def test_adds_context_without_mutating(self):
        resource = {"resourceType": "Observation", "id": "obs-1", "status": "final"}
        doc = resource_to_jsonld(resource)
        assert doc["@context"] == FHIR_JSONLD_CONTEXT
        assert "@context" not in resource
        assert doc["id"] == "obs-1"

    def test_requires_resource_type(self):
        with pytest.raises(ValueError, match="resourceType"):
            resource_to_jsonld({"id": "x"})


class TestExpandResource:

    def test_type_and_properties_become_fhir_iris(self):
        expanded = expand_resource({
            "resourceType": "MedicationRequest",
            "id": "med-1",
            "status": "active",
        })
        assert len(expanded) == 1
        node = expanded[0]
        assert node["@type"] == [FHIR + "MedicationRequest"]
        assert node[FHIR + "id"] == [{"@value": "med-1"}]
        assert node[FHIR + "status"] == [{"@value": "active"}]

    def test_expands_a_mapped_resource(self):
        doc = HealthcareDocument(
            id="doc-9",
            category="prescription",
            uploaded_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            patient_id="pat-9",
        )
        result = map_to_fhir(doc, [{"type": "medication", "value": "Aspirin 81mg"}])
        node = expand_resource(result.resource)[0]
        assert node["@type"] == [FHIR + "MedicationRequest"]
        assert FHIR + "medicationCodeableConcept" in node
        assert FHIR + "extension" in node
