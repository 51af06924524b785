"""
Team Consensus Aggregator - multi-participant answering, voting and scoring.

Per question a TeamResponse moves through:

    awaiting_individual_responses -> disagreement check
        -> resolved_no_discussion            (everyone answered the same way)
        -> discussion / voting rounds -> consensus_reached (terminal)

Votes for the round in progress collect in `open_votes`. Once every member has
voted the round is tallied and appended to `voting_rounds` as an immutable
snapshot; the history is append-only. The next vote opens a new round seeded
from the last sealed round's votes. A vote must match an answer some member
proposed individually. Consensus needs a unique top answer held by more than
half the team.

The session object is caller-owned state: callers serialise updates to it.
`aggregate_team` is a pure function over the responses it is given.
"""

import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from backend.readiness.context import (
    AssessmentResponse, Gap, Question, RawAnswer, RiskClassification, ScoreResult,
)
from backend.readiness.gaps import DEFAULT_TOP_GAPS
from backend.readiness.scoring import parse_answer, score

logger = logging.getLogger(__name__)


ROLE_GAP_LIMIT = 5
MAX_RECOMMENDATIONS = 5
MAX_DISAGREEMENT_TOPICS = 5
LOW_CONFIDENCE = 2.5
MIN_CONFIDENCE, MAX_CONFIDENCE = 1, 5
RATIONALE_BONUS_LENGTH = 20


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class TeamRole(Enum):
    QUALITY_MANAGER = "quality_manager"
    REGULATORY_AFFAIRS = "regulatory_affairs"
    DESIGN_ENGINEER = "design_engineer"
    MANUFACTURING_LEAD = "manufacturing_lead"
    CLINICAL_SPECIALIST = "clinical_specialist"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class TrainingPhase(Enum):
    """Session-level phases, in order."""
    ROLE_ASSIGNMENT = "role_assignment"
    INDIVIDUAL_ASSESSMENT = "individual_assessment"
    TEAM_DISCUSSION = "team_discussion"
    CONSENSUS_BUILDING = "consensus_building"
    RESULTS_REVIEW = "results_review"


class DisagreementLevel(Enum):
    NONE = "none"
    MINOR = "minor"
    SIGNIFICANT = "significant"
    MAJOR = "major"


_DISAGREEMENT_RANK = {
    DisagreementLevel.NONE: 0,
    DisagreementLevel.MINOR: 1,
    DisagreementLevel.SIGNIFICANT: 2,
    DisagreementLevel.MAJOR: 3,
}


class RoundOutcome(Enum):
    MAJORITY = "majority"      # complete round without a qualifying winner
    CONSENSUS = "consensus"


class VoteStatus(Enum):
    """Result of `TeamSession.submit_vote`."""
    RECORDED = "recorded"
    NO_CONSENSUS = "no_consensus"
    CONSENSUS = "consensus"
    NOT_A_MEMBER = "not_a_member"
    NOT_IN_DISCUSSION = "not_in_discussion"
    ALREADY_RESOLVED = "already_resolved"
    INVALID_ANSWER = "invalid_answer"


class QuestionState(Enum):
    AWAITING_RESPONSES = "awaiting_individual_responses"
    IN_DISCUSSION = "discussion"
    RESOLVED_NO_DISCUSSION = "resolved_no_discussion"
    CONSENSUS_REACHED = "consensus_reached"


# ---------------------------------------------------------------------------
# Session data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TeamMember:
    id: str
    name: str
    role: TeamRole
    department: str = ""
    is_leader: bool = False


@dataclass(frozen=True)
class IndividualResponse:
    answer: RawAnswer
    confidence: int = 3
    rationale: str = ""


@dataclass(frozen=True)
class DiscussionNote:
    member_id: str
    text: str


@dataclass(frozen=True)
class VotingRound:
    """A sealed round: every member's vote, in member order."""
    round_number: int
    votes: Tuple[Tuple[str, RawAnswer], ...]
    outcome: RoundOutcome
    winner: Optional[RawAnswer] = None

    def vote_map(self) -> Dict[str, RawAnswer]:
        return dict(self.votes)


@dataclass
class TeamResponse:
    """Per-question aggregate. Frozen in practice once `consensus_reached`."""
    question_id: str
    individual_responses: Dict[str, IndividualResponse] = field(default_factory=dict)
    discussion_notes: List[DiscussionNote] = field(default_factory=list)
    voting_rounds: List[VotingRound] = field(default_factory=list)
    open_votes: Dict[str, RawAnswer] = field(default_factory=dict)
    disagreement_level: DisagreementLevel = DisagreementLevel.NONE
    consensus_reached: bool = False
    final_answer: Optional[RawAnswer] = None

    @property
    def completed_rounds(self) -> int:
        return len(self.voting_rounds)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def answer_key(value: RawAnswer) -> str:
    """Comparable key for an answer value (True and "true" agree)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip().lower()


def classify_disagreement(responses: Mapping[str, IndividualResponse]) -> DisagreementLevel:
    if len(responses) < 2:
        return DisagreementLevel.NONE
    keys = [answer_key(r.answer) for r in responses.values()]
    distinct = len(set(keys))
    if distinct == len(keys):
        return DisagreementLevel.MAJOR
    avg_confidence = sum(r.confidence for r in responses.values()) / len(responses)
    if avg_confidence < LOW_CONFIDENCE:
        return DisagreementLevel.SIGNIFICANT
    if distinct > 1:
        return DisagreementLevel.MINOR
    return DisagreementLevel.NONE


def tally_votes(votes: Mapping[str, RawAnswer],
                team_size: int) -> Tuple[RoundOutcome, Optional[RawAnswer]]:
    """Unique maximum with a strict majority of the team wins; otherwise no consensus."""
    if not votes:
        return RoundOutcome.MAJORITY, None
    counts = Counter(answer_key(v) for v in votes.values())
    top = max(counts.values())
    leaders = [key for key, n in counts.items() if n == top]
    if len(leaders) == 1 and top > team_size / 2:
        winner = next(v for v in votes.values() if answer_key(v) == leaders[0])
        return RoundOutcome.CONSENSUS, winner
    return RoundOutcome.MAJORITY, None


def seal_round(round_number: int, votes: Mapping[str, RawAnswer],
               member_ids: Sequence[str]) -> Optional[VotingRound]:
    """Tally `votes` into a sealed round once every member has voted, else None."""
    if not member_ids or not all(m in votes for m in member_ids):
        return None
    ordered = {m: votes[m] for m in member_ids}
    outcome, winner = tally_votes(ordered, len(member_ids))
    return VotingRound(round_number, tuple(ordered.items()), outcome, winner)


# ---------------------------------------------------------------------------
# Session state machine
# ---------------------------------------------------------------------------

class TeamSession:
    """Caller-owned team session: members, per-question responses, votes."""

    def __init__(self, members: Sequence[TeamMember],
                 questions: Optional[Sequence[Question]] = None, name: str = "",
                 session_id: Optional[str] = None):
        self.id = session_id or str(uuid.uuid4())
        self.name = name
        self.members: List[TeamMember] = list(members)
        # answers to catalog questions must parse; unknown ids are accepted as given
        self.questions: Dict[str, Question] = {q.id: q for q in questions or ()}
        self.phase = TrainingPhase.ROLE_ASSIGNMENT
        self.responses: Dict[str, TeamResponse] = {}

    @property
    def member_ids(self) -> List[str]:
        return [m.id for m in self.members]

    def is_member(self, member_id: str) -> bool:
        return any(m.id == member_id for m in self.members)

    def advance_phase(self) -> TrainingPhase:
        phases = list(TrainingPhase)
        idx = phases.index(self.phase)
        if idx < len(phases) - 1:
            self.phase = phases[idx + 1]
        return self.phase

    # -- answering ---------------------------------------------------------

    def submit_individual_response(self, member_id: str, question_id: str,
                                   answer: RawAnswer, confidence: int = 3,
                                   rationale: str = "") -> bool:
        if not self.is_member(member_id):
            logger.debug("Ignoring response from non-member %s", member_id)
            return False
        response = self.responses.get(question_id)
        if response is not None and response.consensus_reached:
            logger.debug("Ignoring response on resolved question %s", question_id)
            return False
        question = self.questions.get(question_id)
        if question is not None and parse_answer(question, answer) is None:
            logger.debug("Ignoring unusable answer %r from %s on %s", answer, member_id, question_id)
            return False

        response = self.responses.setdefault(question_id, TeamResponse(question_id))
        confidence = min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, int(confidence)))
        response.individual_responses[member_id] = IndividualResponse(answer, confidence, rationale)
        response.disagreement_level = classify_disagreement(response.individual_responses)

        everyone = all(m in response.individual_responses for m in self.member_ids)
        if everyone and response.disagreement_level is DisagreementLevel.NONE:
            response.final_answer = next(iter(response.individual_responses.values())).answer
            response.consensus_reached = True
            logger.info("Question %s resolved unanimously", question_id)
        return True

    def add_discussion_note(self, member_id: str, question_id: str, text: str) -> bool:
        response = self.responses.get(question_id)
        if not self.is_member(member_id) or response is None or not text.strip():
            logger.debug("Ignoring discussion note from %s on %s", member_id, question_id)
            return False
        if response.consensus_reached:
            return False
        response.discussion_notes.append(DiscussionNote(member_id, text.strip()))
        return True

    # -- voting ------------------------------------------------------------

    def submit_vote(self, member_id: str, question_id: str, vote: RawAnswer) -> VoteStatus:
        if not self.is_member(member_id):
            logger.debug("Ignoring vote from non-member %s", member_id)
            return VoteStatus.NOT_A_MEMBER
        response = self.responses.get(question_id)
        if response is None or not response.individual_responses:
            return VoteStatus.NOT_IN_DISCUSSION
        if response.consensus_reached:
            logger.debug("Ignoring vote on resolved question %s", question_id)
            return VoteStatus.ALREADY_RESOLVED

        proposed = _proposed_answer(response, vote)
        if proposed is None:
            logger.debug("Ignoring vote %r on %s: no member proposed it", vote, question_id)
            return VoteStatus.INVALID_ANSWER

        if not response.open_votes and response.voting_rounds:
            response.open_votes = response.voting_rounds[-1].vote_map()
        response.open_votes[member_id] = proposed
        sealed = seal_round(len(response.voting_rounds) + 1, response.open_votes, self.member_ids)
        if sealed is None:
            return VoteStatus.RECORDED

        response.voting_rounds.append(sealed)
        response.open_votes = {}
        if sealed.outcome is RoundOutcome.CONSENSUS:
            response.final_answer = sealed.winner
            response.consensus_reached = True
            logger.info("Consensus on %s in round %d: %r",
                        question_id, sealed.round_number, sealed.winner)
            return VoteStatus.CONSENSUS
        logger.info("No consensus on %s in round %d", question_id, sealed.round_number)
        return VoteStatus.NO_CONSENSUS

    # -- queries -----------------------------------------------------------

    def question_state(self, question_id: str) -> QuestionState:
        response = self.responses.get(question_id)
        if response is None or not response.individual_responses:
            return QuestionState.AWAITING_RESPONSES
        if response.consensus_reached:
            if response.voting_rounds:
                return QuestionState.CONSENSUS_REACHED
            return QuestionState.RESOLVED_NO_DISCUSSION
        everyone = all(m in response.individual_responses for m in self.member_ids)
        if not everyone and response.disagreement_level is DisagreementLevel.NONE:
            return QuestionState.AWAITING_RESPONSES
        return QuestionState.IN_DISCUSSION

    def questions_needing_discussion(self) -> List[str]:
        return [qid for qid in self.responses
                if self.question_state(qid) is QuestionState.IN_DISCUSSION]

    def consensus_responses(self) -> List[AssessmentResponse]:
        return consensus_responses(self.responses.values())

    def aggregate(self, questions: Sequence[Question],
                  classification: Optional[RiskClassification] = None,
                  top_n: int = DEFAULT_TOP_GAPS,
                  role_gap_limit: int = ROLE_GAP_LIMIT) -> "TeamScoreResult":
        return aggregate_team(self.responses, self.members, questions,
                              classification, top_n, role_gap_limit)


def _proposed_answer(response: TeamResponse, vote: RawAnswer) -> Optional[RawAnswer]:
    """The individually proposed answer `vote` matches, in its original form."""
    key = answer_key(vote)
    for ir in response.individual_responses.values():
        if answer_key(ir.answer) == key:
            return ir.answer
    return None


def consensus_responses(team_responses: Iterable[TeamResponse]) -> List[AssessmentResponse]:
    return [AssessmentResponse(r.question_id, r.final_answer)
            for r in team_responses
            if r.consensus_reached and r.final_answer is not None]


# ---------------------------------------------------------------------------
# Team results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConsensusMetrics:
    overall_consensus_rate: float
    time_to_consensus: Dict[str, float]
    disagreement_patterns: Dict[str, DisagreementLevel]
    highest_disagreement_topics: Tuple[str, ...]
    consensus_quality: str
    voting_rounds_required: float


@dataclass(frozen=True)
class TeamDynamics:
    participation_balance: Dict[str, float]
    communication_effectiveness: float
    conflict_resolution_style: str
    decision_making_speed: str


@dataclass(frozen=True)
class RoleAnalysis:
    member_id: str
    member_name: str
    role: TeamRole
    expected_strengths: Tuple[str, ...]
    strength_areas: Tuple[str, ...]
    improvement_areas: Tuple[str, ...]
    actual_performance: int
    knowledge_gaps: Tuple[Gap, ...]
    contribution_quality: float
    collaboration_score: float
    recommended_training: Tuple[str, ...]
    role_specific_insights: Tuple[str, ...]


@dataclass(frozen=True)
class TeamRecommendation:
    type: str
    priority: str
    description: str
    target_roles: Tuple[str, ...] = ()
    estimated_impact: int = 0
    implementation_steps: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TeamScoreResult:
    team_score: ScoreResult
    individual_scores: Dict[str, ScoreResult]
    consensus_metrics: ConsensusMetrics
    dynamics: TeamDynamics
    role_analysis: Dict[str, RoleAnalysis]
    collaboration_score: float
    recommendations: Tuple[TeamRecommendation, ...]


# Expected strengths are clause titles from the catalog's clause map.
ROLE_STRENGTHS = {
    TeamRole.QUALITY_MANAGER: (
        "Corrective and Preventive Action", "Management Review", "Internal Audit",
        "Documentation Requirements",
        "Control of Externally Provided Processes, Products and Services",
    ),
    TeamRole.REGULATORY_AFFAIRS: (
        "Post-Market Surveillance", "Complaint Files", "Feedback", "Performance Evaluation",
    ),
    TeamRole.DESIGN_ENGINEER: (
        "Design Controls", "Risk Management", "Medical Device Software", "Usability Engineering",
    ),
    TeamRole.MANUFACTURING_LEAD: (
        "Process Validation", "Production and Service Provision", "Traceability",
        "Sterilization of Healthcare Products", "Monitoring and Measuring Resources",
        "Control of Nonconforming Output",
    ),
    TeamRole.CLINICAL_SPECIALIST: (
        "Clinical Investigation", "Post-Market Surveillance", "Feedback", "Performance Evaluation",
    ),
}

ROLE_TRAINING = {
    TeamRole.QUALITY_MANAGER: (
        "Advanced CAPA Techniques", "Risk-Based QMS Design", "Supplier Audit Skills",
    ),
    TeamRole.REGULATORY_AFFAIRS: (
        "Regulatory Science", "Global Harmonization", "Digital Submissions",
    ),
    TeamRole.DESIGN_ENGINEER: (
        "Design for Regulatory Compliance", "Advanced Risk Management", "V&V Best Practices",
    ),
    TeamRole.MANUFACTURING_LEAD: (
        "Lean Manufacturing for Medical Devices", "Process Validation Lifecycle",
        "Equipment Qualification",
    ),
    TeamRole.CLINICAL_SPECIALIST: (
        "Real-World Evidence", "Post-Market Clinical Follow-up", "Regulatory Science",
    ),
}


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _consensus_quality(rate: float, disagreements: int) -> str:
    if rate >= 0.9 and disagreements < 2:
        return "strong"
    if rate >= 0.75:
        return "moderate"
    if rate >= 0.5:
        return "weak"
    return "forced"


def _consensus_metrics(responses: Sequence[TeamResponse]) -> ConsensusMetrics:
    total = len(responses)
    reached = sum(1 for r in responses if r.consensus_reached)
    rate = reached / total if total else 0.0

    time_to_consensus = {
        r.question_id: len(r.discussion_notes) * 2 + r.completed_rounds * 5
        for r in responses if r.voting_rounds
    }
    patterns = {r.question_id: r.disagreement_level for r in responses
                if r.disagreement_level is not DisagreementLevel.NONE}
    heated = sorted(
        (qid for qid, level in patterns.items()
         if _DISAGREEMENT_RANK[level] >= _DISAGREEMENT_RANK[DisagreementLevel.SIGNIFICANT]),
        key=lambda qid: _DISAGREEMENT_RANK[patterns[qid]], reverse=True,
    )

    return ConsensusMetrics(
        overall_consensus_rate=rate * 100,
        time_to_consensus=time_to_consensus,
        disagreement_patterns=patterns,
        highest_disagreement_topics=tuple(heated[:MAX_DISAGREEMENT_TOPICS]),
        consensus_quality=_consensus_quality(rate, len(patterns)),
        voting_rounds_required=_mean([r.completed_rounds for r in responses]),
    )


def _wrote_note(response: TeamResponse, member_id: str) -> bool:
    return any(n.member_id == member_id for n in response.discussion_notes)


def _decision_speed(avg_rounds: float) -> str:
    if avg_rounds <= 1:
        return "fast"
    if avg_rounds <= 2:
        return "moderate"
    if avg_rounds <= 3:
        return "slow"
    return "stalled"


def _conflict_style(responses: Sequence[TeamResponse]) -> str:
    resolved = [r for r in responses if r.consensus_reached]
    if not resolved:
        return "unresolved"
    voted = [r for r in resolved if r.voting_rounds]
    if not voted:
        return "aligned"
    if _mean([r.completed_rounds for r in voted]) <= 1:
        return "collaborative"
    return "negotiated"


def _team_dynamics(responses: Sequence[TeamResponse],
                   members: Sequence[TeamMember]) -> TeamDynamics:
    total = len(responses)
    participation: Dict[str, float] = {}
    for member in members:
        count = 0.0
        for r in responses:
            if member.id in r.individual_responses:
                count += 1
            if _wrote_note(r, member.id):
                count += 0.5
        participation[member.id] = min(100.0, count / total * 100) if total else 0.0

    notes = sum(len(r.discussion_notes) for r in responses)
    communication = min(100.0, notes / total * 25) if total else 0.0

    return TeamDynamics(
        participation_balance=participation,
        communication_effectiveness=communication,
        conflict_resolution_style=_conflict_style(responses),
        decision_making_speed=_decision_speed(_mean([r.completed_rounds for r in responses])),
    )


def _contribution_quality(member: TeamMember, responses: Sequence[TeamResponse]) -> float:
    answered = [r.individual_responses[member.id] for r in responses
                if member.id in r.individual_responses]
    if not answered:
        return 0.0
    points = sum(ir.confidence + (1 if len(ir.rationale) > RATIONALE_BONUS_LENGTH else 0)
                 for ir in answered)
    return min(100.0, points / len(answered) * 20)


def _member_collaboration(member: TeamMember, responses: Sequence[TeamResponse]) -> float:
    if not responses:
        return 0.0
    points = 0
    for r in responses:
        if _wrote_note(r, member.id):
            points += 2
        rounds = [rd.vote_map() for rd in r.voting_rounds]
        votes = [answer_key(v[member.id]) for v in rounds if member.id in v]
        if len(votes) > 1 and len(set(votes)) > 1:
            points += 1
    return min(100.0, points / (len(responses) * 3) * 100)


def _role_analysis(member: TeamMember, individual: ScoreResult,
                   responses: Sequence[TeamResponse], gap_limit: int) -> RoleAnalysis:
    expected = ROLE_STRENGTHS.get(member.role, ())
    performance = {f.category: f.performance
                   for f in individual.weighted_breakdown.weighting_factors}
    strengths = tuple(c for c in expected if c in performance and performance[c] >= 80)
    weak = tuple(c for c in expected if c in performance and performance[c] < 70)

    insights: List[str] = []
    if individual.score < 70:
        insights.append(f"Performance below expected level for {member.role.label} role")
    if individual.critical_hit:
        insights.append("Critical compliance areas need immediate attention")
    if weak:
        insights.append(f"Expected strengths underperforming: {', '.join(weak)}")

    return RoleAnalysis(
        member_id=member.id,
        member_name=member.name,
        role=member.role,
        expected_strengths=expected,
        strength_areas=strengths,
        improvement_areas=weak,
        actual_performance=individual.score,
        knowledge_gaps=individual.gaps[:max(0, gap_limit)],
        contribution_quality=_contribution_quality(member, responses),
        collaboration_score=_member_collaboration(member, responses),
        recommended_training=ROLE_TRAINING.get(member.role, ()),
        role_specific_insights=tuple(insights),
    )


def _recommendations(metrics: ConsensusMetrics, dynamics: TeamDynamics,
                     roles: Dict[str, RoleAnalysis]) -> List[TeamRecommendation]:
    all_roles = tuple(dict.fromkeys(ra.role.value for ra in roles.values()))
    recs: List[TeamRecommendation] = []

    if metrics.overall_consensus_rate < 70:
        recs.append(TeamRecommendation(
            type="communication",
            priority="short_term",
            description="Improve team consensus building through structured discussion protocols",
            target_roles=all_roles,
            estimated_impact=25,
            implementation_steps=(
                "Implement structured discussion templates",
                "Set clear consensus criteria before discussions",
                "Use a decision-making framework such as a RACI matrix",
                "Practice active listening techniques",
            ),
        ))

    balance = list(dynamics.participation_balance.values())
    if balance and max(balance) - min(balance) > 40:
        recs.append(TeamRecommendation(
            type="leadership",
            priority="immediate",
            description="Address participation imbalance to ensure all voices are heard",
            target_roles=all_roles,
            estimated_impact=30,
            implementation_steps=(
                "Assign rotating discussion facilitators",
                "Implement round-robin discussion format",
                "Set participation guidelines and expectations",
            ),
        ))

    low = tuple(dict.fromkeys(ra.role.value for ra in roles.values() if ra.actual_performance < 70))
    if low:
        recs.append(TeamRecommendation(
            type="training",
            priority="short_term",
            description="Provide targeted training to address individual knowledge gaps",
            target_roles=low,
            estimated_impact=40,
            implementation_steps=(
                "Conduct detailed skills gap analysis",
                "Develop role-specific training programs",
                "Implement peer mentoring",
                "Schedule regular knowledge sharing sessions",
            ),
        ))

    return recs[:MAX_RECOMMENDATIONS]


def aggregate_team(team_responses: Mapping[str, TeamResponse],
                   members: Sequence[TeamMember],
                   questions: Sequence[Question],
                   classification: Optional[RiskClassification] = None,
                   top_n: int = DEFAULT_TOP_GAPS,
                   role_gap_limit: int = ROLE_GAP_LIMIT) -> TeamScoreResult:
    """
    Team score from consensus answers only, plus per-member scores, consensus
    metrics, team dynamics, role analysis and recommendations.
    Responses for questions outside `questions` are left out.
    """
    in_scope = {q.id for q in questions}
    responses = [r for qid, r in team_responses.items() if qid in in_scope]

    team_result = score(consensus_responses(responses), questions, classification, top_n)

    individual: Dict[str, ScoreResult] = {}
    for member in members:
        answers = [AssessmentResponse(r.question_id, r.individual_responses[member.id].answer)
                   for r in responses if member.id in r.individual_responses]
        individual[member.id] = score(answers, questions, classification, top_n)

    metrics = _consensus_metrics(responses)
    dynamics = _team_dynamics(responses, members)
    collaboration = (
        metrics.overall_consensus_rate * 0.4
        + _mean(list(dynamics.participation_balance.values())) * 0.3
        + dynamics.communication_effectiveness * 0.3
    )
    roles = {m.id: _role_analysis(m, individual[m.id], responses, role_gap_limit)
             for m in members}

    return TeamScoreResult(
        team_score=team_result,
        individual_scores=individual,
        consensus_metrics=metrics,
        dynamics=dynamics,
        role_analysis=roles,
        collaboration_score=collaboration,
        recommendations=tuple(_recommendations(metrics, dynamics, roles)),
    )
