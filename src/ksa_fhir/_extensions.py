"""
Saudi jurisdiction extensions derived from document metadata.

``build_saudi_extensions()`` is pure: it returns new extension objects
and never touches a resource.  Attaching them is the mapper's job, and
the mapper only ever attaches to a resource it has just created, so
extensions cannot accumulate across calls.
"""

from __future__ import annotations

from ksa_fhir._constants import (
    BCP_47,
    CONFIDENTIALITY_EXTENSION_URL,
    FACILITY_EXTENSION_URL,
    LANGUAGE_EXTENSION_URL,
)
from ksa_fhir._models import HealthcareDocument, SaudiExtension
from ksa_fhir._resolver import default_confidentiality


def language_coding(language: str) -> dict[str, str]:
    """BCP-47 coding for a document language (``ar`` or anything else)."""
    if language == "ar":
        return {"system": BCP_47, "code": "ar-SA", "display": "Arabic"}
    return {"system": BCP_47, "code": "en-US", "display": "English"}


def build_saudi_extensions(document: HealthcareDocument) -> list[SaudiExtension]:
    """Derive the jurisdiction extensions for *document*.

    Produces, in order:

    1. ``facility-identifier`` (string) when ``facility_id`` is set;
    2. ``document-language`` (coding ``ar-SA`` / ``en-US``) when
       ``metadata.language`` is set; ``mixed`` documents are tagged
       English;
    3. ``confidentiality-level`` (string), always, taken from
       ``metadata.confidentiality_level`` or, when absent, the default
       level for the document category.
    """
    extensions: list[SaudiExtension] = []

    if document.facility_id:
        extensions.append(SaudiExtension(
            url=FACILITY_EXTENSION_URL,
            value_string=document.facility_id,
        ))

    if document.metadata.language:
        extensions.append(SaudiExtension(
            url=LANGUAGE_EXTENSION_URL,
            value_coding=language_coding(document.metadata.language),
        ))

    level = document.metadata.confidentiality_level or default_confidentiality(document.category)
    extensions.append(SaudiExtension(
        url=CONFIDENTIALITY_EXTENSION_URL,
        value_string=level,
    ))

    return extensions
