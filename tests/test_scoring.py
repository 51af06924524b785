import pytest

from backend.readiness.catalog import get_filtered_questions
from backend.readiness.context import (
    AssessmentResponse, Framework, QuestionType, RiskClassification, RiskLevel, SelectAnswer,
    Status, TextAnswer, YesNoAnswer,
)
from backend.readiness.extraction import parse_csv_text
from backend.readiness.scoring import parse_answer, score


def _all_affirmative(questions):
    answers = []
    for q in questions:
        if q.type is QuestionType.YES_NO:
            answers.append(AssessmentResponse(q.id, True))
        elif q.type is QuestionType.SELECT:
            answers.append(AssessmentResponse(q.id, q.options[-1]))
    return answers


# ---------------------------------------------------------------------------
# Worked scenarios
# ---------------------------------------------------------------------------

def test_single_critical_no(yes_no, respond):
    result = score(respond(Q1=False), [yes_no("Q1", 10, critical=True)])
    assert result.score == 0
    assert result.critical_hit
    assert result.status is Status.RED
    assert result.critical_failures == ("Q1",)
    assert len(result.gaps) == 1
    assert result.gaps[0].deficit == 10


def test_two_yes_answers_score_full_marks(yes_no, respond):
    result = score(respond(Q1=True, Q2=True), [yes_no("Q1", 5), yes_no("Q2", 5)])
    assert result.score == 100
    assert result.status is Status.GREEN
    assert result.gaps == ()
    assert not result.critical_hit


def test_select_below_gap_threshold(select, respond):
    result = score(respond(Q1=2), [select("Q1", 8)])
    gap = result.gaps[0]
    assert gap.deficit == pytest.approx(8 / 3)
    assert result.weighted_breakdown.actual_weighted_score == pytest.approx(16 / 3)
    assert result.raw_score == 67


# ---------------------------------------------------------------------------
# Properties over the real catalog
# ---------------------------------------------------------------------------

def test_all_affirmative_catalog_scores_100():
    questions = get_filtered_questions(["CFR_820"])
    assert all(q.type is not QuestionType.TEXT for q in questions)
    result = score(_all_affirmative(questions), questions)
    assert result.score == 100
    assert result.status is Status.GREEN
    assert result.gaps == ()


@pytest.mark.parametrize("failing, answer", [("Q1", False), ("Q13", 1), ("Q13", "No validation program")])
def test_any_critical_failure_caps_score(failing, answer):
    questions = get_filtered_questions(["CFR_820", "ISO_13485"])
    answers = _all_affirmative(questions) + [AssessmentResponse(failing, answer)]
    result = score(answers, questions)
    assert result.critical_hit
    assert failing in result.critical_failures
    assert result.score <= 60
    assert result.raw_score > result.score
    assert result.status is Status.RED


def test_critical_select_at_half_is_gap_but_not_critical(select, respond):
    q = select("Q1", 4, options=("a", "b", "c", "d", "e"), critical=True)
    result = score(respond(Q1="c"), [q])
    assert not result.critical_hit
    assert result.gaps[0].deficit == pytest.approx(2.0)


def test_gaps_sorted_by_deficit_with_stable_ties(yes_no, select, respond):
    questions = [yes_no("Q1", 2), yes_no("Q2", 5), yes_no("Q3", 2), select("Q4", 6)]
    result = score(respond(Q1=False, Q2=False, Q3=False, Q4=0), questions)
    assert [g.question_id for g in result.gaps] == ["Q4", "Q2", "Q1", "Q3"]
    deficits = [g.deficit for g in result.gaps]
    assert deficits == sorted(deficits, reverse=True)
    assert all(d >= 0 for d in deficits)


def test_top_gaps_limit(yes_no, respond):
    questions = [yes_no(f"Q{i}", i) for i in range(1, 9)]
    answers = respond(**{q.id: False for q in questions})
    assert len(score(answers, questions).top_gaps) == 5
    assert [g.question_id for g in score(answers, questions, top_n=2).top_gaps] == ["Q8", "Q7"]
    assert score(answers, questions, top_n=0).top_gaps == ()


# ---------------------------------------------------------------------------
# Status bands
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("passed, failed, status", [
    (69, 31, Status.RED),
    (70, 30, Status.AMBER),
    (84, 16, Status.AMBER),
    (85, 15, Status.GREEN),
])
def test_status_bands(yes_no, respond, passed, failed, status):
    result = score(respond(A=True, B=False), [yes_no("A", passed), yes_no("B", failed)])
    assert result.score == passed
    assert result.status is status


# ---------------------------------------------------------------------------
# Tolerated input
# ---------------------------------------------------------------------------

def test_empty_catalog_scores_zero(respond):
    result = score(respond(Q1=True), [])
    assert result.score == 0
    assert result.status is Status.RED
    assert result.weighted_breakdown.total_possible_weight == 0


def test_unknown_question_ids_ignored(yes_no, respond):
    result = score(respond(Q1=True, STALE=False), [yes_no("Q1", 5)])
    assert result.score == 100
    assert result.answered_count == 1


def test_later_response_wins(yes_no):
    answers = [AssessmentResponse("Q1", False), AssessmentResponse("Q1", True)]
    assert score(answers, [yes_no("Q1", 5, critical=True)]).score == 100


def test_unanswered_questions_count_toward_total(yes_no, respond):
    result = score(respond(Q1=True), [yes_no("Q1", 5), yes_no("Q2", 5)])
    assert result.score == 50
    assert result.gaps == ()


def test_single_option_select_is_full_credit(select, respond):
    result = score(respond(Q1=0), [select("Q1", 4, options=("Only",))])
    assert result.score == 100


def test_text_answers_earn_partial_credit_without_gap(text_q, respond):
    result = score(respond(Q1="We keep investigation plans on file"), [text_q("Q1", 10)])
    assert result.score == 70
    assert result.gaps == ()
    assert not result.critical_hit


def test_blank_text_is_unanswered(text_q, respond):
    result = score(respond(Q1="   "), [text_q("Q1", 10)])
    assert result.answered_count == 0
    assert result.score == 0


def test_unmatched_select_option_ignored(select, respond):
    result = score(respond(Q1="Sometimes"), [select("Q1", 4)])
    assert result.answered_count == 0


# ---------------------------------------------------------------------------
# Answer parsing
# ---------------------------------------------------------------------------

def test_parse_answer_by_type(yes_no, select, text_q):
    assert parse_answer(yes_no("Q", 1), "Yes") == YesNoAnswer(True)
    assert parse_answer(yes_no("Q", 1), "false") == YesNoAnswer(False)
    assert parse_answer(yes_no("Q", 1), 1) == YesNoAnswer(True)
    assert parse_answer(yes_no("Q", 1), "maybe") is None
    sel = select("Q", 1)
    assert parse_answer(sel, "mostly") == SelectAnswer(2, "Mostly")
    assert parse_answer(sel, 3) == SelectAnswer(3, "Full")
    assert parse_answer(sel, 3.0) == SelectAnswer(3, "Full")
    assert parse_answer(sel, 4) is None
    assert parse_answer(sel, True) is None
    assert parse_answer(text_q("Q", 1), " notes ") == TextAnswer("notes")


def test_uploaded_yes_no_words_still_answer_text_questions(text_q):
    csv = "question_id,answer\nQ1,No\nQ2,yes\n"
    responses = parse_csv_text(csv)
    assert [r.answer for r in responses] == [False, True]
    assert parse_answer(text_q("Q1", 1), False) == TextAnswer("No")
    assert parse_answer(text_q("Q2", 1), True) == TextAnswer("Yes")
    result = score(responses, [text_q("Q1", 10), text_q("Q2", 10)])
    assert result.answered_count == 2
    assert result.score == 70


# ---------------------------------------------------------------------------
# Breakdown, frameworks, classification
# ---------------------------------------------------------------------------

def test_weighted_breakdown_groups_by_clause_title(yes_no, respond):
    questions = [
        yes_no("Q1", 5, clause_ref="QMS.820.30", critical=True),
        yes_no("Q2", 4, clause_ref="QMS.820.30"),
        yes_no("Q3", 3, clause_ref="ISO.9.2"),
    ]
    result = score(respond(Q1=False, Q2=True, Q3=True), questions)
    breakdown = result.weighted_breakdown
    assert [f.category for f in breakdown.weighting_factors] == ["Design Controls", "Internal Audit"]
    design = breakdown.weighting_factors[0]
    assert design.weight == 9
    assert design.actual_score == 4
    assert design.performance == pytest.approx(400 / 9)
    assert breakdown.critical_impact == 10
    assert breakdown.total_possible_weight == 12


def test_framework_scores(yes_no, respond):
    questions = [
        yes_no("Q1", 5, frameworks=(Framework.MDR, Framework.ISO_13485)),
        yes_no("Q2", 5, frameworks=(Framework.MDR,)),
    ]
    result = score(respond(Q1=True, Q2=False), questions)
    assert set(result.framework_scores) == {"MDR", "ISO_13485"}
    assert result.framework_scores["MDR"].score == 50
    assert result.framework_scores["MDR"].gaps == 1
    assert result.framework_scores["ISO_13485"].score == 100


def test_classification_changes_weights(yes_no, respond):
    questions = [
        yes_no("Q1", 5, risk_multipliers={"Class III": 2.0}),
        yes_no("Q2", 5),
    ]
    cls = RiskClassification(level=RiskLevel.VERY_HIGH, fda_class="Class III")
    assert score(respond(Q1=False, Q2=True), questions).score == 50
    weighted = score(respond(Q1=False, Q2=True), questions, cls)
    assert weighted.score == 33
    assert weighted.gaps[0].deficit == pytest.approx(10.0)


def test_result_carries_risk_assessment_and_version(yes_no, respond):
    result = score(respond(Q1=False), [yes_no("Q1", 5, critical=True)])
    assert result.risk_assessment.overall_risk.value == "critical"
    assert result.version
