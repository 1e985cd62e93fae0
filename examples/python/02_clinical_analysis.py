"""
Example 02: Clinical screening, risk and compliance
===================================================

Runs the safety rules over a polypharmacy prescription, first with the
reference checkers, then with a site-specific allergy checker plugged
in through the ``AllergyChecker`` protocol.
"""

from ksa_fhir import (
    CheckOutcome,
    HealthcareDocument,
    HealthcareFHIREngine,
    LocalizedText,
    configure_logging,
)

configure_logging("WARNING")

document = HealthcareDocument(id="rx-77", category="prescription", patient_id="pat-5")
content = "Warfarin 5mg daily; Aspirin 81mg daily; Amoxicillin 500mg BID. Allergy: Penicillin"

entities = [
    {"type": "medication", "value": "Warfarin", "confidence": 0.95},
    {"type": "medication", "value": "Aspirin", "confidence": 0.95},
    {"type": "medication", "value": "Amoxicillin", "confidence": 0.93},
    {"type": "allergy", "value": "Penicillin", "confidence": 0.9},
]


def show(title, analysis):
    print(f"=== {title} ===\n")
    for d in analysis.decisions:
        print(f"  {d.type}/{d.severity}: {d.message.en} ({d.id})")
    risk = analysis.risk
    print(f"  risk: {risk.level} ({risk.score})")
    c = analysis.compliance
    print(f"  MOH={c.moh_approval} NPHIES={c.nphies_compatible} Wasfaty={c.wasfaty_integrated}")
    print()


# ── 1. Reference checkers ────────────────────────────────────────

show("Reference checkers", HealthcareFHIREngine().analyze(document, entities, content))


# ── 2. A beta-lactam allergy checker ─────────────────────────────

PENICILLINS = {"amoxicillin", "ampicillin", "penicillin"}


class PenicillinAllergyChecker:
    def check(self, medications, allergies):
        allergic = any(a.value.lower() in PENICILLINS for a in allergies)
        hits = [m.value for m in medications if m.value.lower() in PENICILLINS]
        return CheckOutcome(
            flagged=allergic and bool(hits),
            severity="high",
            message=LocalizedText(
                en=f"Penicillin allergy: {', '.join(hits) or 'none'} contraindicated",
                ar="حساسية البنسلين: الدواء ممنوع",
            ),
            evidence=("Patient allergy record",),
        )


engine = HealthcareFHIREngine(allergy_checker=PenicillinAllergyChecker())
show("With allergy checker", engine.analyze(document, entities, content))
