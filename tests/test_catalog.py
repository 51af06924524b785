import pytest

from backend.readiness.catalog import (
    QUESTIONS, STANDARDS_MAP, UNKNOWN_CLAUSE_TITLE, clause_title, get_filtered_questions,
    get_question_by_id, get_question_count_by_framework, get_questions, suggested_evidence,
)
from backend.readiness.context import Framework, Question, QuestionType


def test_question_ids_are_unique():
    ids = [q.id for q in QUESTIONS]
    assert len(ids) == len(set(ids))


def test_every_question_is_tagged_and_weighted():
    for q in get_questions():
        assert q.frameworks
        assert q.weight > 0
        if q.type is QuestionType.SELECT:
            assert len(q.options) >= 2


def test_every_clause_ref_has_metadata():
    for q in QUESTIONS:
        assert q.clause_ref in STANDARDS_MAP
        assert clause_title(q.clause_ref) != UNKNOWN_CLAUSE_TITLE


def test_unknown_clause_falls_back():
    assert clause_title("NOPE.1") == UNKNOWN_CLAUSE_TITLE
    assert suggested_evidence("NOPE.1") == []


def test_filter_preserves_catalog_order():
    filtered = get_filtered_questions({Framework.MDR, Framework.CFR_820})
    positions = [QUESTIONS.index(q) for q in filtered]
    assert positions == sorted(positions)
    assert all({Framework.MDR, Framework.CFR_820} & set(q.frameworks) for q in filtered)


def test_filter_accepts_string_ids_and_ignores_unknown():
    by_enum = get_filtered_questions([Framework.IVDR])
    by_name = get_filtered_questions(["IVDR", "NOT_A_FRAMEWORK"])
    assert by_enum == by_name
    assert by_enum


def test_empty_selection_returns_nothing_unless_include_all():
    assert get_filtered_questions([]) == []
    assert get_filtered_questions([], include_all=True) == list(QUESTIONS)


def test_filter_is_deterministic():
    assert get_filtered_questions(["ISO_13485"]) == get_filtered_questions(["ISO_13485"])


def test_question_lookup():
    assert get_question_by_id("Q1").clause_ref == "QMS.820.30"
    assert get_question_by_id("Q999") is None


def test_counts_cover_every_framework():
    counts = get_question_count_by_framework()
    assert set(counts) == set(Framework)
    assert counts[Framework.ISO_13485] == len(get_filtered_questions(["ISO_13485"]))


@pytest.mark.parametrize("kwargs, message", [
    ({"frameworks": ()}, "no framework"),
    ({"weight": 0}, "positive weight"),
    ({"type": QuestionType.SELECT, "options": ()}, "no options"),
])
def test_invalid_question_rejected(kwargs, message):
    base = dict(id="QX", prompt="?", type=QuestionType.YES_NO, weight=1,
                clause_ref="ISO.8.5", frameworks=(Framework.MDR,))
    base.update(kwargs)
    with pytest.raises(ValueError, match=message):
        Question(**base)
