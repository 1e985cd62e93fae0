"""
Saudi compliance assessment.

Folds three independent checks into a ``SaudiComplianceData`` record:

  - ``moh``:    Ministry of Health field completeness
  - ``nphies``: national exchange (NPHIES) format compatibility
  - ``pdpl``:   Personal Data Protection Law compliance

Each check is a ``ComplianceCheck`` callable and can be replaced through
the ``checks`` argument of ``assess_saudi_compliance()``.  The default
checks are lightweight content/category rules; submission to the
national platforms is out of scope.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable

from ksa_fhir._constants import DOCUMENT_CATEGORIES
from ksa_fhir._models import (
    ComplianceValidationResult,
    LocalizedText,
    SaudiComplianceData,
)

_DOSE_STRENGTH_RE = re.compile(r"\d+(?:\.\d+)?\s*(mg|mcg|g|ml|iu|units?)\b", re.IGNORECASE)


@dataclass(frozen=True)
class ComplianceOutcome:
    """Result of a single compliance check.

    Attributes:
        passed:  Whether the content satisfies the rule.
        results: Diagnostics to report; empty when the check passes
                 silently.
    """

    passed: bool
    results: tuple[ComplianceValidationResult, ...] = field(default_factory=tuple)


@runtime_checkable
class ComplianceCheck(Protocol):
    """A single pass/fail compliance rule over raw content and category."""

    def __call__(self, content: str, category: str) -> ComplianceOutcome:
        ...


# ═══════════════════════════════════════════════════════════════════
# DEFAULT CHECKS
# ═══════════════════════════════════════════════════════════════════


def check_moh_completeness(content: str, category: str) -> ComplianceOutcome:
    """Fail on empty content; warn on prescriptions naming no dose strength."""
    if not content or not content.strip():
        return ComplianceOutcome(passed=False, results=(
            ComplianceValidationResult(
                field="content",
                status="invalid",
                message=LocalizedText(
                    en="Document content is empty",
                    ar="محتوى الوثيقة فارغ",
                ),
            ),
        ))

    if category == "prescription" and not _DOSE_STRENGTH_RE.search(content):
        return ComplianceOutcome(passed=True, results=(
            ComplianceValidationResult(
                field="dosage",
                status="warning",
                message=LocalizedText(
                    en="Prescription does not state a dose strength",
                    ar="الوصفة الطبية لا تحدد قوة الجرعة",
                ),
            ),
        ))

    return ComplianceOutcome(passed=True)


def check_nphies_compatibility(content: str, category: str) -> ComplianceOutcome:
    """Only the known document categories have an NPHIES exchange mapping."""
    if category in DOCUMENT_CATEGORIES:
        return ComplianceOutcome(passed=True)
    return ComplianceOutcome(passed=False, results=(
        ComplianceValidationResult(
            field="category",
            status="invalid",
            message=LocalizedText(
                en=f"Document category '{category}' has no NPHIES mapping",
                ar=f"فئة الوثيقة '{category}' غير مدعومة في نفيس",
            ),
        ),
    ))


def check_pdpl_compliance(content: str, category: str) -> ComplianceOutcome:
    # TODO: detect unmasked national ID / Iqama numbers in content.
    return ComplianceOutcome(passed=True)


DEFAULT_COMPLIANCE_CHECKS: dict[str, ComplianceCheck] = {
    "moh": check_moh_completeness,
    "nphies": check_nphies_compatibility,
    "pdpl": check_pdpl_compliance,
}


# ═══════════════════════════════════════════════════════════════════
# PUBLIC API
# ═══════════════════════════════════════════════════════════════════


def assess_saudi_compliance(
    content: str,
    category: str,
    *,
    checks: Optional[dict[str, ComplianceCheck]] = None,
) -> SaudiComplianceData:
    """Assess a document against the Saudi compliance checks.

    Args:
        content:  Raw document text.
        category: Document category.
        checks:   Overrides for ``moh`` / ``nphies`` / ``pdpl``, merged
                  over ``DEFAULT_COMPLIANCE_CHECKS``.

    Returns:
        Compliance record.  ``wasfaty_integrated`` holds only for
        prescriptions that pass the MOH check; ``sehhaty_compatible`` is
        always True.  Validation results are collected in check order.

    Raises:
        ValueError: If *checks* contains an unknown check name.
    """
    overrides = checks or {}
    unknown = set(overrides) - set(DEFAULT_COMPLIANCE_CHECKS)
    if unknown:
        raise ValueError(
            f"Unknown compliance checks: {sorted(unknown)}. "
            f"Supported: {', '.join(DEFAULT_COMPLIANCE_CHECKS)}"
        )
    active = {**DEFAULT_COMPLIANCE_CHECKS, **overrides}

    moh = active["moh"](content, category)
    nphies = active["nphies"](content, category)
    pdpl = active["pdpl"](content, category)

    return SaudiComplianceData(
        moh_approval=moh.passed,
        nphies_compatible=nphies.passed,
        wasfaty_integrated=category == "prescription" and moh.passed,
        sehhaty_compatible=True,
        pdpl_compliant=pdpl.passed,
        validation_results=moh.results + nphies.results + pdpl.results,
    )
