"""
Scoring Engine - weighted composite readiness score with critical-failure gating.

Pipeline for one invocation:
  1. resolve the effective weight of every question in the (filtered) catalog
  2. score each answered question by type (yes/no, select, free text)
  3. raw percentage = obtained / possible, rounded half up
  4. any critical hit caps the score at 60
  5. status from the capped score: <70 red, <85 amber, else green
  6. per-category weighted breakdown, per-framework scores
  7. gaps ranked by deficit, plus a top-N slice for reports

Responses for unknown question ids are ignored: the UI may submit stale ids
while the framework filter changes. Later responses for the same id supersede
earlier ones.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from backend.readiness.assessment import assess_risk
from backend.readiness.catalog import clause_title, suggested_evidence
from backend.readiness.context import (
    Answer, AssessmentResponse, Framework, FrameworkScore, Gap, Question,
    QuestionType, RawAnswer, RiskClassification, ScoreResult, SelectAnswer,
    Status, TextAnswer, WeightedBreakdown, WeightingFactor, YesNoAnswer,
)
from backend.readiness.gaps import DEFAULT_TOP_GAPS, rank_gaps, top_gaps
from backend.readiness.weights import resolve_weight, round_half_up

logger = logging.getLogger(__name__)


CRITICAL_SCORE_CAP = 60
AMBER_THRESHOLD = 70
GREEN_THRESHOLD = 85
SELECT_CRITICAL_RATIO = 0.5
SELECT_GAP_RATIO = 0.7
TEXT_CREDIT = 0.7
CRITICAL_IMPACT_PER_FAILURE = 10

_YES = {"yes", "true", "y"}
_NO = {"no", "false", "n"}


# ---------------------------------------------------------------------------
# Answer interpretation
# ---------------------------------------------------------------------------

def parse_answer(question: Question, raw: RawAnswer) -> Optional[Answer]:
    """
    Interpret a raw submitted value against the question's declared type.
    Returns None when the value cannot answer this question.
    """
    if question.type is QuestionType.YES_NO:
        if isinstance(raw, bool):
            return YesNoAnswer(raw)
        if isinstance(raw, str):
            token = raw.strip().lower()
            if token in _YES:
                return YesNoAnswer(True)
            if token in _NO:
                return YesNoAnswer(False)
            return None
        if isinstance(raw, (int, float)) and raw in (0, 1):
            return YesNoAnswer(bool(raw))
        return None

    if question.type is QuestionType.SELECT:
        if isinstance(raw, bool):
            return None
        if isinstance(raw, str):
            wanted = raw.strip().lower()
            for idx, option in enumerate(question.options):
                if option.lower() == wanted:
                    return SelectAnswer(idx, option)
            return None
        if isinstance(raw, (int, float)) and float(raw).is_integer():
            idx = int(raw)
            if 0 <= idx < len(question.options):
                return SelectAnswer(idx, question.options[idx])
        return None

    if isinstance(raw, bool):
        # uploads coerce yes/no words to booleans before the question type is known
        return TextAnswer("Yes" if raw else "No")
    text = str(raw).strip()
    return TextAnswer(text) if text else None


def select_ratio(question: Question, answer: SelectAnswer) -> float:
    """Linear credit by ordinal position; a single-option list is fully satisfied."""
    count = len(question.options)
    if count <= 1:
        return 1.0
    return answer.index / (count - 1)


def status_for(score: int) -> Status:
    if score < AMBER_THRESHOLD:
        return Status.RED
    if score < GREEN_THRESHOLD:
        return Status.AMBER
    return Status.GREEN


# ---------------------------------------------------------------------------
# Per-question evaluation
# ---------------------------------------------------------------------------

@dataclass
class _Evaluated:
    question: Question
    weight: float
    ratio: float
    critical_hit: bool
    gap_deficit: Optional[float]

    @property
    def achieved(self) -> float:
        return self.weight * self.ratio


def _evaluate(question: Question, answer: Answer, weight: float) -> _Evaluated:
    if isinstance(answer, YesNoAnswer):
        if answer.value:
            return _Evaluated(question, weight, 1.0, False, None)
        return _Evaluated(question, weight, 0.0, question.critical, weight)

    if isinstance(answer, SelectAnswer):
        ratio = select_ratio(question, answer)
        critical = question.critical and ratio < SELECT_CRITICAL_RATIO
        deficit = weight * (1 - ratio) if ratio < SELECT_GAP_RATIO else None
        return _Evaluated(question, weight, ratio, critical, deficit)

    if isinstance(answer, TextAnswer):
        # free text earns fixed partial credit and never registers a gap
        return _Evaluated(question, weight, TEXT_CREDIT, False, None)

    raise TypeError(f"Unsupported answer type: {type(answer).__name__}")


def _latest_by_question(responses: Iterable[AssessmentResponse]) -> Dict[str, AssessmentResponse]:
    latest: Dict[str, AssessmentResponse] = {}
    for response in responses:
        latest[response.question_id] = response
    return latest


# ---------------------------------------------------------------------------
# Breakdown and framework scores
# ---------------------------------------------------------------------------

def _weighted_breakdown(questions: Sequence[Question], weights: Dict[str, float],
                        evaluated: Dict[str, _Evaluated], total_possible: float,
                        obtained: float, critical_count: int) -> WeightedBreakdown:
    categories: Dict[str, WeightingFactor] = {}
    for q in questions:
        name = clause_title(q.clause_ref)
        factor = categories.setdefault(name, WeightingFactor(category=name))
        weight = weights[q.id]
        factor.weight += weight
        factor.max_score += weight
        if q.id in evaluated:
            factor.actual_score += evaluated[q.id].achieved
        if q.clause_ref not in factor.clause_refs:
            factor.clause_refs.append(q.clause_ref)

    for factor in categories.values():
        factor.performance = (
            factor.actual_score / factor.max_score * 100 if factor.max_score > 0 else 0.0
        )

    ordered = sorted(categories.values(), key=lambda f: f.weight, reverse=True)
    return WeightedBreakdown(
        total_possible_weight=total_possible,
        actual_weighted_score=obtained,
        weighting_factors=tuple(ordered),
        critical_impact=critical_count * CRITICAL_IMPACT_PER_FAILURE,
    )


def _framework_recommendation(performance: float) -> str:
    if performance >= 90:
        return "Excellent compliance posture. Continue monitoring and improvement."
    if performance >= 80:
        return "Good compliance foundation. Focus on identified gaps."
    if performance >= 70:
        return "Moderate compliance. Systematic improvement needed."
    return "Significant compliance gaps. Immediate action required."


def _framework_scores(questions: Sequence[Question],
                      evaluated: Dict[str, _Evaluated]) -> Dict[str, FrameworkScore]:
    scores: Dict[str, FrameworkScore] = {}
    for framework in Framework:
        tagged = [q for q in questions if framework in q.frameworks]
        if not tagged:
            continue
        obtained = possible = 0.0
        critical = gaps = 0
        for q in tagged:
            ev = evaluated.get(q.id)
            if ev is None:
                continue
            obtained += ev.achieved
            possible += ev.weight
            critical += int(ev.critical_hit)
            gaps += int(ev.gap_deficit is not None)
        performance = obtained / possible * 100 if possible > 0 else 0.0
        rounded = int(round_half_up(performance))
        scores[framework.value] = FrameworkScore(
            framework=framework,
            score=rounded,
            max_possible_score=possible,
            critical_failures=critical,
            gaps=gaps,
            performance=rounded,
            recommendation=_framework_recommendation(performance),
        )
    return scores


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def score(responses: Iterable[AssessmentResponse], questions: Sequence[Question],
          classification: Optional[RiskClassification] = None,
          top_n: int = DEFAULT_TOP_GAPS) -> ScoreResult:
    """Score responses against an already framework-filtered catalog."""
    latest = _latest_by_question(responses)
    weights: Dict[str, float] = {}
    evaluated: Dict[str, _Evaluated] = {}
    total_possible = 0.0

    for q in questions:
        weight = resolve_weight(q, classification)
        weights[q.id] = weight
        total_possible += weight

        response = latest.get(q.id)
        if response is None:
            continue
        answer = parse_answer(q, response.answer)
        if answer is None:
            logger.debug("Ignoring unusable answer %r for %s", response.answer, q.id)
            continue
        evaluated[q.id] = _evaluate(q, answer, weight)

    stale = [qid for qid in latest if qid not in weights]
    if stale:
        logger.debug("Ignoring %d response(s) for questions outside the catalog: %s",
                     len(stale), ", ".join(stale))

    obtained = sum(ev.achieved for ev in evaluated.values())
    raw = int(round_half_up(100 * obtained / total_possible)) if total_possible > 0 else 0
    raw = min(100, max(0, raw))

    critical_failures = [qid for qid, ev in evaluated.items() if ev.critical_hit]
    critical_hit = bool(critical_failures)
    final = min(raw, CRITICAL_SCORE_CAP) if critical_hit else raw

    gaps: List[Gap] = []
    for qid, ev in evaluated.items():
        if ev.gap_deficit is None:
            continue
        q = ev.question
        gaps.append(Gap(
            question_id=qid,
            prompt=q.prompt,
            clause_ref=q.clause_ref,
            clause_title=clause_title(q.clause_ref),
            deficit=ev.gap_deficit,
            suggested_evidence=tuple(suggested_evidence(q.clause_ref)),
            critical=q.critical,
        ))
    ranked = rank_gaps(gaps)

    return ScoreResult(
        score=final,
        raw_score=raw,
        status=status_for(final),
        critical_hit=critical_hit,
        critical_failures=tuple(critical_failures),
        gaps=tuple(ranked),
        top_gaps=tuple(top_gaps(ranked, top_n)),
        weighted_breakdown=_weighted_breakdown(
            questions, weights, evaluated, total_possible, obtained, len(critical_failures)),
        risk_assessment=assess_risk(final, critical_failures, ranked),
        framework_scores=_framework_scores(questions, evaluated),
        answered_count=len(evaluated),
    )
