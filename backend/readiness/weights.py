"""
Weight Resolver - effective question weight for a classified device.
"""

import math
from typing import Optional

from backend.readiness.catalog import SOFTWARE_USABILITY_CLAUSES, STERILIZATION_CLAUSES
from backend.readiness.context import Question, RiskClassification


STERILE_BONUS = 1.2
ACTIVE_COMPONENT_BONUS = 1.3
DRUG_DEVICE_BONUS = 1.1


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a spreadsheet: halves go away from zero for positive values."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def resolve_weight(question: Question,
                   classification: Optional[RiskClassification] = None) -> float:
    """
    Base weight scaled by the question's multiplier for the device class.

    FDA class is preferred over EU class. Without a multiplier table, a
    classification, a device class or a matching multiplier, the base weight is
    returned unchanged. Bonus factors compose multiplicatively with the class
    multiplier; the result is rounded to one decimal place and never negative.
    """
    if not question.risk_multipliers or classification is None:
        return question.weight

    device_class = classification.fda_class or classification.eu_class
    if not device_class:
        return question.weight

    multiplier = question.risk_multipliers.get(device_class)
    if multiplier is None:
        return question.weight

    weight = question.weight * multiplier
    if classification.is_sterile and question.clause_ref in STERILIZATION_CLAUSES:
        weight *= STERILE_BONUS
    if classification.has_active_components and question.clause_ref in SOFTWARE_USABILITY_CLAUSES:
        weight *= ACTIVE_COMPONENT_BONUS
    if classification.is_drug_device and question.critical:
        weight *= DRUG_DEVICE_BONUS

    return max(0.0, round_half_up(weight, 1))
