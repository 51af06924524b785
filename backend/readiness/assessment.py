"""
Risk / Maturity Assessor - qualitative annotation of a computed score.

Advisory only: it reads the score, the critical failures and the ranked gaps
and never changes the numeric result.
"""

from typing import List, Sequence

from backend.readiness.context import (
    Gap, Likelihood, Maturity, OverallRisk, RiskAssessment, RiskFactor,
)


HIGH_IMPACT_DEFICIT = 3.0
MANY_GAPS = 5


def _overall_risk(score: int, critical_count: int, gap_count: int) -> OverallRisk:
    if critical_count > 2 or score < 50:
        return OverallRisk.CRITICAL
    if critical_count > 0 or score < 70:
        return OverallRisk.HIGH
    if gap_count > MANY_GAPS or score < 85:
        return OverallRisk.MEDIUM
    return OverallRisk.LOW


def _maturity(score: int, critical_count: int) -> Maturity:
    if score < 60:
        tier = Maturity.BASIC
    elif score < 75:
        tier = Maturity.DEVELOPING
    elif score < 90:
        tier = Maturity.ADVANCED
    else:
        tier = Maturity.OPTIMIZED
    # an organisation failing a critical requirement cannot be rated above developing
    if critical_count > 0 and tier in (Maturity.ADVANCED, Maturity.OPTIMIZED):
        tier = Maturity.DEVELOPING
    return tier


def assess_risk(score: int, critical_failures: Sequence[str],
                gaps: Sequence[Gap]) -> RiskAssessment:
    """Derive risk factors, overall risk, maturity and mitigation order."""
    factors: List[RiskFactor] = []
    critical_count = len(critical_failures)

    if critical_count:
        failed = set(critical_failures)
        refs = list(dict.fromkeys(g.clause_ref for g in gaps if g.question_id in failed))
        factors.append(RiskFactor(
            type="critical_failure",
            description=f"{critical_count} critical compliance requirement(s) not met",
            impact=critical_count * 20,
            likelihood=Likelihood.HIGH,
            clause_refs=tuple(refs),
        ))

    high_impact = [g for g in gaps if g.deficit > HIGH_IMPACT_DEFICIT]
    if high_impact:
        factors.append(RiskFactor(
            type="high_weight_gap",
            description=f"{len(high_impact)} high-impact compliance gap(s) identified",
            impact=min(30, len(high_impact) * 10),
            likelihood=Likelihood.MEDIUM,
            clause_refs=tuple(g.clause_ref for g in high_impact),
        ))

    if len(gaps) > MANY_GAPS:
        factors.append(RiskFactor(
            type="systemic_gaps",
            description=f"{len(gaps)} gaps spread across the quality system",
            impact=min(20, len(gaps) * 2),
            likelihood=Likelihood.LOW,
            clause_refs=tuple(dict.fromkeys(g.clause_ref for g in gaps)),
        ))

    priorities: List[str] = []
    if critical_count:
        priorities.append("Address critical compliance failures immediately")
    for gap in gaps:
        item = f"Close gap in {gap.clause_title} ({gap.clause_ref})"
        if item not in priorities:
            priorities.append(item)
    priorities.extend([
        "Strengthen process documentation",
        "Enhance monitoring and measurement systems",
        "Improve training and competency programs",
    ])

    return RiskAssessment(
        overall_risk=_overall_risk(score, critical_count, len(gaps)),
        compliance_maturity=_maturity(score, critical_count),
        risk_factors=tuple(factors),
        mitigation_priority=tuple(priorities),
    )
