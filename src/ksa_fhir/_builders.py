"""
Stand-alone resource builders.

Where ``map_to_fhir()`` turns a whole document into one resource,
these helpers build individual Patient, MedicationRequest and
Observation resources carrying the Saudi profiles and identifiers.
Resource ids default to a digest of the inputs and timestamps are
supplied by the caller, so the same inputs always build the same
resource.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from ksa_fhir._constants import (
    BCP_47,
    IQAMA_SYSTEM,
    LOINC,
    NAME_LANGUAGE_EXTENSION_URL,
    NATIONAL_ID_SYSTEM,
    SAUDI_CODE_SYSTEMS,
    SAUDI_PROFILES,
    UCUM,
)
from ksa_fhir._ids import stable_id
from ksa_fhir._mapper import dosage_instruction, medication_concept
from ksa_fhir._models import MedicalEntity, PatientInfo
from ksa_fhir._quantities import extract_numeric_value


def _meta(resource_type: str, last_updated: Optional[datetime]) -> dict[str, Any]:
    meta: dict[str, Any] = {"profile": [SAUDI_PROFILES[resource_type]]}
    if last_updated is not None:
        meta["lastUpdated"] = last_updated.isoformat()
    return meta


def _saudi_identifier(code: str, display: str, system: str, value: str) -> dict[str, Any]:
    return {
        "use": "official",
        "type": {
            "coding": [
                {
                    "system": SAUDI_CODE_SYSTEMS["SAUDI-IDENTIFIERS"],
                    "code": code,
                    "display": display,
                }
            ]
        },
        "system": system,
        "value": value,
    }


def create_patient_resource(
    patient: PatientInfo,
    *,
    national_id: Optional[str] = None,
    iqama_id: Optional[str] = None,
    arabic_name: Optional[str] = None,
    last_updated: Optional[datetime] = None,
) -> dict[str, Any]:
    """Build a Saudi-profile Patient.

    Citizens are identified by *national_id*, residents by *iqama_id*;
    both are added when given.  An *arabic_name* adds a second ``usual``
    name tagged with the name-language extension.  Arabic is recorded
    as the preferred communication language.

    Args:
        patient:      Demographics.
        national_id:  Saudi national ID number.
        iqama_id:     Iqama (residence permit) number.
        arabic_name:  Full name in Arabic script.
        last_updated: Value for ``meta.lastUpdated``; omitted when None.

    Returns:
        A FHIR R4 Patient resource.
    """
    patient_id = patient.id or stable_id(
        "patient", patient.full_name, patient.birth_date, national_id, iqama_id,
    )

    official_name: dict[str, Any] = {"use": "official"}
    if patient.family_name:
        official_name["family"] = patient.family_name
    if patient.given_name:
        official_name["given"] = [patient.given_name]
    if patient.full_name:
        official_name["text"] = patient.full_name

    names: list[dict[str, Any]] = []
    if len(official_name) > 1:
        names.append(official_name)
    if arabic_name:
        names.append({
            "use": "usual",
            "text": arabic_name,
            "extension": [
                {
                    "url": NAME_LANGUAGE_EXTENSION_URL,
                    "valueCoding": {"system": BCP_47, "code": "ar-SA", "display": "Arabic"},
                }
            ],
        })

    identifiers: list[dict[str, Any]] = []
    if national_id:
        identifiers.append(_saudi_identifier(
            "NATIONAL-ID", "Saudi National ID", NATIONAL_ID_SYSTEM, national_id,
        ))
    if iqama_id:
        identifiers.append(_saudi_identifier(
            "IQAMA-ID", "Saudi Iqama ID", IQAMA_SYSTEM, iqama_id,
        ))

    resource: dict[str, Any] = {
        "resourceType": "Patient",
        "id": patient_id,
        "meta": _meta("Patient", last_updated),
        "identifier": identifiers,
        "name": names,
        "gender": patient.gender or "unknown",
        "communication": [
            {
                "language": {
                    "coding": [
                        {"system": BCP_47, "code": "ar-SA", "display": "Arabic (Saudi Arabia)"}
                    ]
                },
                "preferred": True,
            }
        ],
    }
    if patient.birth_date:
        resource["birthDate"] = patient.birth_date
    return resource


def create_medication_request(
    entity: MedicalEntity,
    patient_id: str,
    prescriber_id: str,
    *,
    dosage: Optional[str] = None,
    frequency: Optional[str] = None,
    authored_on: Optional[datetime] = None,
    resource_id: Optional[str] = None,
) -> dict[str, Any]:
    """Build an active MedicationRequest order for one medication entity.

    The medication concept is only set when the entity carries a code;
    dose and frequency text become a ``dosageInstruction``.

    Raises:
        ValueError: If *entity* is not a medication.
    """
    if entity.type != "medication":
        raise ValueError(f"Expected a medication entity, got '{entity.type}'")

    resource: dict[str, Any] = {
        "resourceType": "MedicationRequest",
        "id": resource_id or stable_id("med-req", entity.value, patient_id, prescriber_id),
        "meta": _meta("MedicationRequest", authored_on),
        "status": "active",
        "intent": "order",
        "subject": {"reference": f"Patient/{patient_id}"},
        "requester": {"reference": f"Practitioner/{prescriber_id}"},
    }
    if authored_on is not None:
        resource["authoredOn"] = authored_on.isoformat()

    if entity.code is not None:
        resource["medicationCodeableConcept"] = medication_concept(entity)

    if dosage or frequency:
        resource["dosageInstruction"] = [dosage_instruction(dosage, frequency)]

    return resource


def create_observation(
    entity: MedicalEntity,
    patient_id: str,
    *,
    performer_id: Optional[str] = None,
    effective: Optional[datetime] = None,
    resource_id: Optional[str] = None,
) -> dict[str, Any]:
    """Build a final Observation for a vital sign or test result."""
    resource: dict[str, Any] = {
        "resourceType": "Observation",
        "id": resource_id or stable_id("obs", entity.type, entity.value, patient_id),
        "meta": _meta("Observation", effective),
        "status": "final",
        "subject": {"reference": f"Patient/{patient_id}"},
    }
    if effective is not None:
        resource["effectiveDateTime"] = effective.isoformat()

    if entity.code is not None:
        resource["code"] = {
            "coding": [
                {"system": LOINC, "code": entity.code.code, "display": entity.value}
            ]
        }

    if entity.type in ("vital_sign", "test_result"):
        quantity = extract_numeric_value(entity.value)
        if quantity is not None:
            resource["valueQuantity"] = {**quantity, "system": UCUM}
        else:
            resource["valueString"] = entity.value

    if performer_id:
        resource["performer"] = [{"reference": f"Practitioner/{performer_id}"}]

    return resource
