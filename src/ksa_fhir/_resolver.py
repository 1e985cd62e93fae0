"""Document category → FHIR resource type resolution."""

from __future__ import annotations

from typing import Optional

import structlog

from ksa_fhir._constants import (
    CATEGORY_CONFIDENTIALITY,
    CATEGORY_RESOURCE_TYPES,
    FALLBACK_CONFIDENTIALITY,
    FALLBACK_RESOURCE_TYPE,
)

logger = structlog.get_logger(__name__)


def resolve_resource_type(category: Optional[str]) -> str:
    """Map a document category to the FHIR resource type it produces.

    Unmapped categories resolve to ``DocumentReference``; this is a
    documented fallback, not an error.
    """
    resource_type = CATEGORY_RESOURCE_TYPES.get(category or "")
    if resource_type is None:
        logger.debug("category_fallback", category=category, resource_type=FALLBACK_RESOURCE_TYPE)
        return FALLBACK_RESOURCE_TYPE
    return resource_type


def default_confidentiality(category: Optional[str]) -> str:
    """Confidentiality level assumed for a category when none is given."""
    return CATEGORY_CONFIDENTIALITY.get(category or "", FALLBACK_CONFIDENTIALITY)
