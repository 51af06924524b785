import pytest

from backend.readiness.context import AssessmentResponse, Framework
from backend.readiness.interview import (
    QUESTION_BANK, InspectorRole, generate_interview_questions, identify_weak_areas,
)


def _no(*qids):
    return [AssessmentResponse(qid, False) for qid in qids]


def _ids(questions):
    return [q.id for q in questions]


def test_weak_areas_follow_gap_severity():
    # Q12 (weight 5, CAPA) outranks Q11 (weight 4, internal audit); Q6 repeats CAPA
    weak = identify_weak_areas(_no("Q11", "Q6", "Q12"))
    assert weak == ("Corrective and Preventive Action", "Internal Audit")
    assert identify_weak_areas([]) == ()
    assert identify_weak_areas([AssessmentResponse("Q12", True)]) == ()


def test_weak_area_questions_come_first():
    questions = generate_interview_questions(_no("Q7"), ["CFR_820"], InspectorRole.LEAD_INSPECTOR)
    assert _ids(questions) == ["lead_002", "lead_001", "lead_003"]


def test_without_weak_areas_easier_questions_come_first():
    questions = generate_interview_questions([], ["CFR_820"], InspectorRole.LEAD_INSPECTOR)
    assert _ids(questions) == ["lead_001", "lead_002", "lead_003"]


def test_document_control_gap_adds_targeted_question():
    questions = generate_interview_questions(
        _no("Q14"), [Framework.CFR_820], InspectorRole.QUALITY_SPECIALIST)
    assert _ids(questions) == ["qual_001", "qual_002", "qual_003", "targeted_doc_001"]
    assert questions[-1].frameworks == (Framework.CFR_820,)


@pytest.mark.parametrize("role, targeted", [
    (InspectorRole.COMPLIANCE_OFFICER, True),
    (InspectorRole.QUALITY_SPECIALIST, True),
    (InspectorRole.LEAD_INSPECTOR, False),
])
def test_capa_follow_up_only_for_quality_roles(role, targeted):
    questions = generate_interview_questions(_no("Q6"), ["ISO_13485"], role)
    assert ("targeted_capa_001" in _ids(questions)) is targeted


def test_questions_are_capped():
    questions = generate_interview_questions(
        _no("Q14", "Q12"), ["ISO_13485"], InspectorRole.QUALITY_SPECIALIST, max_questions=2)
    assert _ids(questions) == ["qual_001", "qual_002"]
    assert generate_interview_questions([], ["ISO_13485"], InspectorRole.QUALITY_SPECIALIST,
                                        max_questions=0) == []


def test_framework_filter_and_include_all():
    clinical = generate_interview_questions([], ["ISO_14155"], InspectorRole.TECHNICAL_REVIEWER)
    assert _ids(clinical) == ["tech_002"]
    everything = generate_interview_questions(
        [], [], InspectorRole.TECHNICAL_REVIEWER, include_all=True)
    assert _ids(everything) == ["tech_001", "tech_002", "tech_003"]
    assert generate_interview_questions([], [], InspectorRole.TECHNICAL_REVIEWER) == []


def test_each_role_has_a_question_bank():
    assert set(QUESTION_BANK) == set(InspectorRole)
    for role, bank in QUESTION_BANK.items():
        assert bank and all(q.role is role for q in bank)
