"""
Data model for the mapping, clinical-rules and compliance engine.

Inputs (``MedicalEntity``, ``HealthcareDocument``) are produced by the
external extraction collaborator and consumed read-only.  Outputs
(``MappingResult``, ``AnalysisResult`` and their parts) are built fresh
per call and handed to the caller; nothing here is retained between
calls.

FHIR resources themselves are not modelled as classes: they are plain
FHIR R4 JSON dicts, which is what downstream exchange connectors
consume.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Mapping, Optional

Severity = Literal["error", "warning", "info"]
DecisionType = Literal["recommendation", "alert", "warning", "contraindication"]
DecisionSeverity = Literal["low", "medium", "high", "critical"]
RiskLevel = Literal["low", "medium", "high", "critical"]
ComplianceStatus = Literal["valid", "invalid", "warning"]

SEVERITIES = ("error", "warning", "info")
DECISION_TYPES = ("recommendation", "alert", "warning", "contraindication")
DECISION_SEVERITIES = ("low", "medium", "high", "critical")
COMPLIANCE_STATUSES = ("valid", "invalid", "warning")


class ConstructionFailure(ValueError):
    """A mandatory document field is missing; no resource can be built.

    Attributes:
        field: Name of the missing document field (``"id"`` or
               ``"category"``).
    """

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(
            message or f"HealthcareDocument.{field} is required to build a FHIR resource"
        )


# ═══════════════════════════════════════════════════════════════════
# VALUE OBJECTS
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class LocalizedText:
    """An English/Arabic message pair.

    Every user-facing message produced by the engine is a
    ``LocalizedText``; both variants are mandatory.
    """

    en: str
    ar: str

    def __post_init__(self) -> None:
        for name in ("en", "ar"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise TypeError(f"LocalizedText.{name} must be a str, got: {type(value).__name__}")
            if not value.strip():
                raise ValueError(f"LocalizedText.{name} must not be empty")

    def get(self, language: str) -> str:
        """Return the Arabic text for ``"ar"``, English otherwise."""
        return self.ar if language == "ar" else self.en


@dataclass(frozen=True)
class EntityPosition:
    """Character offsets of an entity in the source text.

    Ordering (``start <= end``) is deliberately not enforced here:
    malformed positions coming from the extractor are dropped by
    ``normalize_entities()`` instead of failing construction.
    """

    start: int
    end: int


@dataclass(frozen=True)
class MedicalCode:
    """A terminology code attached to an entity by the extractor."""

    system: str
    code: str
    display: str = ""


@dataclass(frozen=True)
class MedicalEntity:
    """A discrete extracted medical fact.

    Attributes:
        type:        Entity type tag (see ``ENTITY_TYPES``).
        value:       Surface text as extracted.
        confidence:  Extraction confidence in ``[0, 1]``.
        position:    Offsets into the source text.
        translation: Bilingual rendering of ``value``, when known.
        code:        Terminology code, when the extractor supplied one.
    """

    type: str
    value: str
    confidence: float = 1.0
    position: EntityPosition = EntityPosition(0, 0)
    translation: Optional[LocalizedText] = None
    code: Optional[MedicalCode] = None

    @property
    def arabic_value(self) -> Optional[str]:
        """The Arabic rendering of the value, if one was supplied."""
        return self.translation.ar if self.translation is not None else None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MedicalEntity:
        """Build an entity from the extractor's JSON shape.

        Accepts ``arabicTranslation`` / ``englishTranslation`` keys and a
        ``position`` mapping.  A missing position defaults to the span of
        the value, as the extractor does.

        Raises:
            KeyError:   If ``type`` or ``value`` is missing.
            TypeError:  If a field has the wrong shape.
            ValueError: If a numeric field cannot be converted.
        """
        etype = data["type"]
        if not isinstance(etype, str):
            raise TypeError(f"Entity type must be a str, got: {type(etype).__name__}")
        value = data["value"]
        if not isinstance(value, str):
            raise TypeError(f"Entity value must be a str, got: {type(value).__name__}")

        pos = data.get("position") or {"start": 0, "end": len(value)}
        position = EntityPosition(int(pos["start"]), int(pos["end"]))

        translation = None
        arabic = data.get("arabicTranslation")
        english = data.get("englishTranslation") or value
        if arabic:
            translation = LocalizedText(en=english, ar=arabic)

        code = None
        raw_code = data.get("code")
        if raw_code:
            code = MedicalCode(
                system=raw_code["system"],
                code=raw_code["code"],
                display=raw_code.get("display", ""),
            )

        return cls(
            type=etype,
            value=value,
            confidence=float(data.get("confidence", 0.8)),
            position=position,
            translation=translation,
            code=code,
        )


# ═══════════════════════════════════════════════════════════════════
# DOCUMENT INPUT
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class DocumentMetadata:
    language: Optional[str] = None
    confidentiality_level: Optional[str] = None
    urgency_level: Optional[str] = None


@dataclass(frozen=True)
class HealthcareDocument:
    """The uploaded document being mapped.

    Only ``id`` and ``category`` are mandatory for mapping; the other
    fields enrich the resource when present.
    """

    id: Optional[str]
    category: Optional[str]
    name: str = ""
    uploaded_at: Optional[datetime] = None
    facility_id: Optional[str] = None
    patient_id: Optional[str] = None
    provider_id: Optional[str] = None
    metadata: DocumentMetadata = DocumentMetadata()


@dataclass(frozen=True)
class PatientInfo:
    """Demographics used by ``create_patient_resource()``."""

    id: Optional[str] = None
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    full_name: Optional[str] = None
    gender: str = "unknown"
    birth_date: Optional[str] = None


# ═══════════════════════════════════════════════════════════════════
# MAPPING OUTPUT
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SaudiExtension:
    """A URL-keyed FHIR extension carrying exactly one typed value."""

    url: str
    value_coding: Optional[dict[str, str]] = None
    value_string: Optional[str] = None
    value_boolean: Optional[bool] = None
    value_integer: Optional[int] = None

    def __post_init__(self) -> None:
        present = [
            name for name in ("value_coding", "value_string", "value_boolean", "value_integer")
            if getattr(self, name) is not None
        ]
        if len(present) != 1:
            raise ValueError(
                f"SaudiExtension '{self.url}' must carry exactly one value, "
                f"got {len(present)} ({', '.join(present) or 'none'})"
            )

    def to_fhir(self) -> dict[str, Any]:
        """Render as a FHIR ``extension`` element."""
        ext: dict[str, Any] = {"url": self.url}
        if self.value_coding is not None:
            ext["valueCoding"] = dict(self.value_coding)
        elif self.value_string is not None:
            ext["valueString"] = self.value_string
        elif self.value_boolean is not None:
            ext["valueBoolean"] = self.value_boolean
        else:
            ext["valueInteger"] = self.value_integer
        return ext


@dataclass(frozen=True)
class FHIRValidationError:
    """A non-fatal diagnostic about a built resource."""

    path: str
    message: LocalizedText
    severity: Severity = "error"

    def __post_init__(self) -> None:
        if self.severity not in SEVERITIES:
            raise ValueError(f"Unknown severity '{self.severity}'")

    def to_dict(self) -> dict[str, str]:
        return {
            "path": self.path,
            "message": self.message.en,
            "arabicMessage": self.message.ar,
            "severity": self.severity,
        }


@dataclass(frozen=True)
class SkippedEntity:
    """An input entity dropped by the normalizer, with the reason."""

    index: int
    reason: str
    entity: Any = None


@dataclass
class MappingResult:
    """Result of ``map_to_fhir()``.

    Attributes:
        resource:          The FHIR R4 resource (JSON dict).
        profile:           Jurisdiction profile URL, or None when no
                           profile is registered for the resource type.
        validation_errors: Diagnostics from ``validate_resource()``.
        mapping_quality:   Score in ``[0, 100]``.
        extensions:        Extensions appended to the resource.
        skipped:           Entities dropped during normalization.
    """

    resource: dict[str, Any]
    profile: Optional[str]
    validation_errors: list[FHIRValidationError] = field(default_factory=list)
    mapping_quality: int = 100
    extensions: list[SaudiExtension] = field(default_factory=list)
    skipped: list[SkippedEntity] = field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════
# ANALYSIS OUTPUT
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class GuidelineReference:
    source: str
    title: str
    url: Optional[str] = None
    version: Optional[str] = None


@dataclass(frozen=True)
class ClinicalDecision:
    """A generated safety or guidance record about a set of entities."""

    id: str
    type: DecisionType
    severity: DecisionSeverity
    message: LocalizedText
    evidence: tuple[str, ...] = ()
    action_required: bool = False
    guidelines: tuple[GuidelineReference, ...] = ()

    def __post_init__(self) -> None:
        if self.type not in DECISION_TYPES:
            raise ValueError(f"Unknown decision type '{self.type}'")
        if self.severity not in DECISION_SEVERITIES:
            raise ValueError(f"Unknown decision severity '{self.severity}'")


@dataclass(frozen=True)
class RiskAssessment:
    level: RiskLevel
    factors: tuple[LocalizedText, ...]
    score: int
    explanation: LocalizedText

    def __post_init__(self) -> None:
        if self.level not in DECISION_SEVERITIES:
            raise ValueError(f"Unknown risk level '{self.level}'")
        if not (0 <= self.score <= 100):
            raise ValueError(f"Risk score must be in [0, 100], got: {self.score}")


@dataclass(frozen=True)
class ComplianceValidationResult:
    field: str
    status: ComplianceStatus
    message: LocalizedText

    def __post_init__(self) -> None:
        if self.status not in COMPLIANCE_STATUSES:
            raise ValueError(f"Unknown compliance status '{self.status}'")


@dataclass(frozen=True)
class SaudiComplianceData:
    moh_approval: bool
    nphies_compatible: bool
    wasfaty_integrated: bool
    sehhaty_compatible: bool
    pdpl_compliant: bool
    validation_results: tuple[ComplianceValidationResult, ...] = ()


@dataclass(frozen=True)
class AnalysisResult:
    decisions: tuple[ClinicalDecision, ...]
    risk: RiskAssessment
    compliance: SaudiComplianceData
