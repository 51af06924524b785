import pytest

from backend.readiness.context import (
    AssessmentResponse, Framework, Question, QuestionType, RiskClassification, RiskLevel,
)


def make_question(qid, weight, qtype=QuestionType.YES_NO, critical=False, options=(),
                  clause_ref="ISO.8.5", frameworks=(Framework.ISO_13485,),
                  risk_multipliers=None):
    return Question(
        id=qid,
        prompt=f"Prompt for {qid}?",
        type=qtype,
        weight=weight,
        clause_ref=clause_ref,
        frameworks=frameworks,
        critical=critical,
        options=tuple(options),
        risk_multipliers=risk_multipliers or {},
    )


@pytest.fixture
def respond():
    """respond(Q1=True, Q2="Full") -> list of AssessmentResponse"""
    return lambda **answers: [AssessmentResponse(qid, value) for qid, value in answers.items()]


@pytest.fixture
def yes_no():
    return lambda qid, weight, **kw: make_question(qid, weight, QuestionType.YES_NO, **kw)


@pytest.fixture
def select():
    def _select(qid, weight, options=("None", "Partial", "Mostly", "Full"), **kw):
        return make_question(qid, weight, QuestionType.SELECT, options=options, **kw)
    return _select


@pytest.fixture
def text_q():
    return lambda qid, weight, **kw: make_question(qid, weight, QuestionType.TEXT, **kw)


@pytest.fixture
def class_iii_sterile():
    return RiskClassification(
        level=RiskLevel.VERY_HIGH, fda_class="Class III", is_sterile=True,
    )
