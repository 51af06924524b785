from backend.readiness.assessment import assess_risk
from backend.readiness.context import Gap, Likelihood, Maturity, OverallRisk
from backend.readiness.gaps import rank_gaps, top_gaps


def _gap(qid, deficit, clause="ISO.8.5"):
    return Gap(qid, f"{qid}?", clause, "Corrective and Preventive Action", deficit)


def test_clean_result_is_low_risk_and_optimized():
    ra = assess_risk(95, [], [])
    assert ra.overall_risk is OverallRisk.LOW
    assert ra.compliance_maturity is Maturity.OPTIMIZED
    assert ra.risk_factors == ()
    assert len(ra.mitigation_priority) == 3


def test_critical_failure_raises_risk_and_caps_maturity():
    ra = assess_risk(60, ["Q1"], [_gap("Q1", 5, clause="QMS.820.30")])
    assert ra.overall_risk is OverallRisk.HIGH
    assert ra.compliance_maturity is Maturity.DEVELOPING
    critical = ra.risk_factors[0]
    assert critical.type == "critical_failure"
    assert critical.clause_refs == ("QMS.820.30",)
    assert critical.likelihood is Likelihood.HIGH
    assert ra.mitigation_priority[0] == "Address critical compliance failures immediately"


def test_many_criticals_or_low_score_is_critical_risk():
    assert assess_risk(55, ["Q1", "Q2", "Q3"], []).overall_risk is OverallRisk.CRITICAL
    assert assess_risk(40, [], []).overall_risk is OverallRisk.CRITICAL


def test_gap_volume_factors():
    gaps = [_gap(f"Q{i}", 4 if i < 3 else 1) for i in range(7)]
    ra = assess_risk(88, [], gaps)
    types = [f.type for f in ra.risk_factors]
    assert types == ["high_weight_gap", "systemic_gaps"]
    assert ra.risk_factors[0].impact == 30
    assert ra.overall_risk is OverallRisk.MEDIUM


def test_maturity_tiers():
    assert assess_risk(50, [], []).compliance_maturity is Maturity.BASIC
    assert assess_risk(70, [], []).compliance_maturity is Maturity.DEVELOPING
    assert assess_risk(80, [], []).compliance_maturity is Maturity.ADVANCED


def test_rank_gaps_is_stable():
    gaps = [_gap("A", 1), _gap("B", 3), _gap("C", 1), _gap("D", 3)]
    assert [g.question_id for g in rank_gaps(gaps)] == ["B", "D", "A", "C"]
    assert [g.question_id for g in top_gaps(rank_gaps(gaps), 3)] == ["B", "D", "A"]
