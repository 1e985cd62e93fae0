"""
JSON-LD rendering of mapped resources.

Wraps PyLD so mapped resources can be handed to RDF-oriented consumers.
This is an export convenience layered on top of the mapping pipeline;
nothing else in the package depends on it.
The context is inline (FHIR vocabulary, ``resourceType`` aliased to
``@type``), so no remote context is ever fetched.
"""

from __future__ import annotations

import copy
from typing import Any

from pyld import jsonld

from ksa_fhir._constants import FHIR

FHIR_JSONLD_CONTEXT: dict[str, Any] = {
    "@vocab": FHIR,
    "resourceType": "@type",
}


def resource_to_jsonld(resource: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *resource* carrying the inline FHIR ``@context``.

    Raises:
        ValueError: If *resource* has no ``resourceType``.
    """
    if "resourceType" not in resource:
        raise ValueError("FHIR resource must contain a 'resourceType' field")
    doc = copy.deepcopy(resource)
    doc["@context"] = dict(FHIR_JSONLD_CONTEXT)
    return doc


def expand_resource(resource: dict[str, Any]) -> list[dict[str, Any]]:
    """Expand *resource* to JSON-LD expanded form.

    Every key becomes a full FHIR IRI (``http://hl7.org/fhir/<key>``) and
    the resource type becomes the node's ``@type``.
    """
    return jsonld.expand(resource_to_jsonld(resource))
