"""
Risk Classifier - maps device attributes to an ordinal risk level.

Rules are evaluated top to bottom and the first match wins:
  1. FDA Class III or EU Class III                          -> Very High
  2. FDA Class II, EU Class IIb or drug-device combination  -> High
  3. EU Class IIa, sterile, active components or measuring  -> Medium
  4. anything else                                          -> Low
Absent attributes are treated as not applicable. Pure, no hidden state.
"""

from typing import List, Optional

from backend.readiness.context import DeviceAttributes, RiskClassification, RiskLevel


def classify(fda_class: Optional[str] = None, eu_class: Optional[str] = None,
             is_sterile: bool = False, is_measuring: bool = False,
             has_active_components: bool = False,
             is_drug_device: bool = False) -> RiskLevel:
    if fda_class == "Class III" or eu_class == "Class III":
        return RiskLevel.VERY_HIGH
    if fda_class == "Class II" or eu_class == "Class IIb" or is_drug_device:
        return RiskLevel.HIGH
    if eu_class == "Class IIa" or is_sterile or has_active_components or is_measuring:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def _justification(attrs: DeviceAttributes, level: RiskLevel) -> str:
    reasons: List[str] = []
    if attrs.fda_class:
        reasons.append(f"FDA {attrs.fda_class}")
    if attrs.eu_class:
        reasons.append(f"EU MDR {attrs.eu_class}")
    if attrs.is_sterile:
        reasons.append("sterile device")
    if attrs.is_measuring:
        reasons.append("measuring function")
    if attrs.has_active_components:
        reasons.append("active components")
    if attrs.is_drug_device:
        reasons.append("drug-device combination")
    basis = ", ".join(reasons) if reasons else "no higher-risk attributes declared"
    return f"{level.value} risk based on: {basis}"


def classify_risk(attrs: Optional[DeviceAttributes]) -> RiskClassification:
    """Classify a device and carry its attributes forward for weight resolution."""
    attrs = attrs or DeviceAttributes()
    level = classify(
        attrs.fda_class, attrs.eu_class, attrs.is_sterile,
        attrs.is_measuring, attrs.has_active_components, attrs.is_drug_device,
    )
    return RiskClassification(
        level=level,
        justification=_justification(attrs, level),
        fda_class=attrs.fda_class,
        eu_class=attrs.eu_class,
        is_sterile=attrs.is_sterile,
        is_measuring=attrs.is_measuring,
        has_active_components=attrs.has_active_components,
        is_drug_device=attrs.is_drug_device,
        device_category=attrs.device_category,
    )


# ---------------------------------------------------------------------------
# Advisory focus areas
# ---------------------------------------------------------------------------

_LEVEL_RECOMMENDATIONS = {
    RiskLevel.VERY_HIGH: [
        "Expect full design dossier and PMA / Notified Body technical documentation review",
        "Prioritise design controls, risk management file and clinical evidence",
        "Prepare for unannounced audits and intensive post-market surveillance scrutiny",
    ],
    RiskLevel.HIGH: [
        "Ensure design verification and validation records are complete and traceable",
        "Demonstrate CAPA effectiveness with objective evidence",
    ],
    RiskLevel.MEDIUM: [
        "Confirm process validation covers all special processes",
        "Keep post-market surveillance trending current",
    ],
    RiskLevel.LOW: [
        "Maintain core QMS documentation and general controls",
    ],
}


def get_risk_specific_recommendations(classification: RiskClassification) -> List[str]:
    recs = list(_LEVEL_RECOMMENDATIONS[classification.level])
    if classification.is_sterile:
        recs.append("Have sterilization validation and routine monitoring records ready")
    if classification.has_active_components:
        recs.append("Review IEC 62304 software lifecycle and IEC 62366 usability files")
    if classification.is_measuring:
        recs.append("Verify metrological traceability and calibration records")
    if classification.is_drug_device:
        recs.append("Document drug-device combination interfaces and consultation outcomes")
    return recs
