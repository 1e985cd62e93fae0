"""
ksa-fhir: FHIR R4 mapping, clinical rules and compliance for Saudi
healthcare documents.

Turns the flat, confidence-scored entity list produced by an upstream
extractor into a FHIR R4 resource carrying the Saudi MOH / NPHIES
profiles and bilingual extensions, and screens the same entities with
deterministic safety rules.

Pipeline:

  (document, entities)
      → normalize_entities       drop malformed entities, de-duplicate
      → resolve_resource_type    category → FHIR resource type
      → map_to_fhir              base resource, profile, entity fields,
                                 Saudi extensions
      → validate_resource        bilingual diagnostics
      → calculate_mapping_quality
      = MappingResult

  entities → generate_clinical_decisions → assess_risk
  (content, category) → assess_saudi_compliance
      = AnalysisResult

Every function is pure and keeps no state between calls.  The only
hard failure is ``ConstructionFailure`` for a document without id or
category.

References:
  - HL7 FHIR R4: https://hl7.org/fhir/R4/
  - NPHIES FHIR implementation guide: https://portal.nphies.sa/ig/
"""

__version__ = "0.3.0"

from ksa_fhir._constants import (
    CATEGORY_RESOURCE_TYPES,
    DEFAULT_QUALITY_WEIGHTS,
    DOCUMENT_CATEGORIES,
    ENTITY_TYPES,
    FALLBACK_RESOURCE_TYPE,
    SAUDI_CODE_SYSTEMS,
    SAUDI_PROFILES,
)
from ksa_fhir._models import (
    AnalysisResult,
    ClinicalDecision,
    ComplianceValidationResult,
    ConstructionFailure,
    DocumentMetadata,
    EntityPosition,
    FHIRValidationError,
    GuidelineReference,
    HealthcareDocument,
    LocalizedText,
    MappingResult,
    MedicalCode,
    MedicalEntity,
    PatientInfo,
    RiskAssessment,
    SaudiComplianceData,
    SaudiExtension,
    SkippedEntity,
)
from ksa_fhir._normalizer import (
    NormalizationReport,
    normalize_entities,
)
from ksa_fhir._resolver import (
    default_confidentiality,
    resolve_resource_type,
)
from ksa_fhir._quantities import (
    create_dosage_timing,
    extract_numeric_value,
    parse_dosage_quantity,
)
from ksa_fhir._extensions import build_saudi_extensions
from ksa_fhir._mapper import (
    create_base_resource,
    map_to_fhir,
)
from ksa_fhir._builders import (
    create_medication_request,
    create_observation,
    create_patient_resource,
)
from ksa_fhir._validator import validate_resource
from ksa_fhir._quality import calculate_mapping_quality
from ksa_fhir._clinical import (
    AllergyChecker,
    CheckOutcome,
    CountingInteractionChecker,
    InteractionChecker,
    NullAllergyChecker,
    NullRecommendationProvider,
    RecommendationProvider,
    generate_clinical_decisions,
)
from ksa_fhir._risk import assess_risk
from ksa_fhir._compliance import (
    DEFAULT_COMPLIANCE_CHECKS,
    ComplianceCheck,
    ComplianceOutcome,
    assess_saudi_compliance,
    check_moh_completeness,
    check_nphies_compatibility,
    check_pdpl_compliance,
)
from ksa_fhir._jsonld import (
    FHIR_JSONLD_CONTEXT,
    expand_resource,
    resource_to_jsonld,
)
from ksa_fhir._engine import HealthcareFHIREngine
from ksa_fhir._logging import configure_logging

__all__ = [
    # Engine
    "HealthcareFHIREngine",
    # Data model
    "AnalysisResult",
    "ClinicalDecision",
    "ComplianceValidationResult",
    "ConstructionFailure",
    "DocumentMetadata",
    "EntityPosition",
    "FHIRValidationError",
    "GuidelineReference",
    "HealthcareDocument",
    "LocalizedText",
    "MappingResult",
    "MedicalCode",
    "MedicalEntity",
    "PatientInfo",
    "RiskAssessment",
    "SaudiComplianceData",
    "SaudiExtension",
    "SkippedEntity",
    # Mapping pipeline
    "normalize_entities",
    "NormalizationReport",
    "resolve_resource_type",
    "default_confidentiality",
    "build_saudi_extensions",
    "create_base_resource",
    "map_to_fhir",
    "validate_resource",
    "calculate_mapping_quality",
    # Text heuristics
    "extract_numeric_value",
    "parse_dosage_quantity",
    "create_dosage_timing",
    # Resource builders
    "create_patient_resource",
    "create_medication_request",
    "create_observation",
    # Clinical rules & risk
    "InteractionChecker",
    "AllergyChecker",
    "CheckOutcome",
    "CountingInteractionChecker",
    "NullAllergyChecker",
    "RecommendationProvider",
    "NullRecommendationProvider",
    "generate_clinical_decisions",
    "assess_risk",
    # Compliance
    "ComplianceCheck",
    "ComplianceOutcome",
    "DEFAULT_COMPLIANCE_CHECKS",
    "assess_saudi_compliance",
    "check_moh_completeness",
    "check_nphies_compatibility",
    "check_pdpl_compliance",
    # JSON-LD export
    "FHIR_JSONLD_CONTEXT",
    "resource_to_jsonld",
    "expand_resource",
    # Logging
    "configure_logging",
    # Constants
    "CATEGORY_RESOURCE_TYPES",
    "DEFAULT_QUALITY_WEIGHTS",
    "DOCUMENT_CATEGORIES",
    "ENTITY_TYPES",
    "FALLBACK_RESOURCE_TYPE",
    "SAUDI_CODE_SYSTEMS",
    "SAUDI_PROFILES",
]
