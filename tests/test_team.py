import pytest

from backend.readiness.context import Framework, QuestionType
from backend.readiness.team import (
    DisagreementLevel, IndividualResponse, QuestionState, RoundOutcome, TeamMember,
    TeamRole, TeamSession, VoteStatus, aggregate_team, classify_disagreement, seal_round,
    tally_votes,
)
from conftest import make_question


def _members(n):
    roles = list(TeamRole)
    return [TeamMember(f"m{i}", f"Member {i}", roles[i % len(roles)]) for i in range(n)]


def _session(n):
    return TeamSession(_members(n))


def _split(session, qid, answers, confidence=4):
    for member, answer in zip(session.members, answers):
        session.submit_individual_response(member.id, qid, answer, confidence)


# ---------------------------------------------------------------------------
# Disagreement
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("answers, confidences, level", [
    ([True], [1], DisagreementLevel.NONE),
    ([True, False], [5, 5], DisagreementLevel.MAJOR),
    (["a", "b", "c"], [5, 5, 5], DisagreementLevel.MAJOR),
    ([True, True, False], [2, 2, 3], DisagreementLevel.SIGNIFICANT),
    ([True, True, True], [1, 2, 2], DisagreementLevel.SIGNIFICANT),
    ([True, True, False], [4, 4, 4], DisagreementLevel.MINOR),
    ([True, "true", True], [3, 3, 3], DisagreementLevel.NONE),
])
def test_classify_disagreement(answers, confidences, level):
    responses = {f"m{i}": IndividualResponse(a, c)
                 for i, (a, c) in enumerate(zip(answers, confidences))}
    assert classify_disagreement(responses) is level


# ---------------------------------------------------------------------------
# Tally and rounds
# ---------------------------------------------------------------------------

def test_three_member_majority_reaches_consensus():
    outcome, winner = tally_votes({"m0": "A", "m1": "A", "m2": "B"}, 3)
    assert outcome is RoundOutcome.CONSENSUS
    assert winner == "A"


def test_three_distinct_votes_never_reach_consensus():
    outcome, winner = tally_votes({"m0": "A", "m1": "B", "m2": "C"}, 3)
    assert outcome is RoundOutcome.MAJORITY
    assert winner is None


def test_tie_is_not_consensus():
    assert tally_votes({"m0": True, "m1": True, "m2": False, "m3": False}, 4)[0] \
        is RoundOutcome.MAJORITY


def test_plurality_without_majority_is_not_consensus():
    votes = {"m0": "A", "m1": "A", "m2": "B", "m3": "C", "m4": "D"}
    assert tally_votes(votes, 5)[0] is RoundOutcome.MAJORITY


def test_seal_round_waits_for_every_member():
    ids = ["m0", "m1"]
    assert seal_round(1, {"m0": True}, ids) is None
    assert seal_round(1, {}, []) is None

    split = seal_round(1, {"m1": False, "m0": True}, ids)
    assert split.outcome is RoundOutcome.MAJORITY
    assert split.votes == (("m0", True), ("m1", False))

    agreed = seal_round(2, {"m0": True, "m1": True}, ids)
    assert agreed.round_number == 2
    assert agreed.outcome is RoundOutcome.CONSENSUS
    assert agreed.winner is True
    with pytest.raises(TypeError):
        agreed.votes[0] = ("m0", False)


# ---------------------------------------------------------------------------
# Session state machine
# ---------------------------------------------------------------------------

def test_four_member_tie_then_flip_reaches_consensus():
    session = _session(4)
    _split(session, "Q1", [True, True, False, False])
    assert session.question_state("Q1") is QuestionState.IN_DISCUSSION

    statuses = [session.submit_vote(m, "Q1", v)
                for m, v in zip(["m0", "m1", "m2", "m3"], [True, True, False, False])]
    assert statuses == [VoteStatus.RECORDED] * 3 + [VoteStatus.NO_CONSENSUS]
    response = session.responses["Q1"]
    assert response.voting_rounds[-1].outcome is RoundOutcome.MAJORITY
    assert not response.consensus_reached

    assert session.submit_vote("m2", "Q1", True) is VoteStatus.CONSENSUS
    assert response.consensus_reached
    assert response.final_answer is True
    assert [r.round_number for r in response.voting_rounds] == [1, 2]
    assert dict(response.voting_rounds[0].votes) == {"m0": True, "m1": True, "m2": False, "m3": False}
    assert session.question_state("Q1") is QuestionState.CONSENSUS_REACHED


def test_sealed_rounds_are_never_rewritten():
    session = _session(4)
    _split(session, "Q1", ["A", "B", "C", "D"])
    response = session.responses["Q1"]
    for member, vote in [("m0", "A"), ("m1", "B"), ("m2", "C")]:
        assert session.submit_vote(member, "Q1", vote) is VoteStatus.RECORDED
    # an open round stays out of the history
    assert response.voting_rounds == []
    assert response.open_votes == {"m0": "A", "m1": "B", "m2": "C"}

    assert session.submit_vote("m3", "Q1", "D") is VoteStatus.NO_CONSENSUS
    first = response.voting_rounds[0]
    assert response.open_votes == {}

    # later rounds start from the last sealed votes and are appended
    assert session.submit_vote("m0", "Q1", "B") is VoteStatus.NO_CONSENSUS
    second = response.voting_rounds[1]
    assert response.voting_rounds[0] is first
    assert first.vote_map() == {"m0": "A", "m1": "B", "m2": "C", "m3": "D"}
    assert second.vote_map() == {"m0": "B", "m1": "B", "m2": "C", "m3": "D"}

    assert session.submit_vote("m2", "Q1", "B") is VoteStatus.CONSENSUS
    assert response.voting_rounds[:2] == [first, second]
    assert response.voting_rounds[0] is first and response.voting_rounds[1] is second
    assert [r.round_number for r in response.voting_rounds] == [1, 2, 3]
    assert response.final_answer == "B"


def test_vote_must_match_a_proposed_answer():
    session = _session(3)
    _split(session, "Q1", [True, False, False])
    statuses = [session.submit_vote(m, "Q1", "maybe") for m in ["m0", "m1", "m2"]]
    assert statuses == [VoteStatus.INVALID_ANSWER] * 3
    response = session.responses["Q1"]
    assert not response.consensus_reached
    assert response.voting_rounds == []
    assert response.open_votes == {}

    # "yes" was never proposed; "true" matches m0's True
    assert session.submit_vote("m0", "Q1", "yes") is VoteStatus.INVALID_ANSWER
    assert session.submit_vote("m0", "Q1", "true") is VoteStatus.RECORDED
    assert response.open_votes == {"m0": True}


def test_unparseable_consensus_never_reaches_the_team_score():
    question = make_question("Q1", 5)
    session = TeamSession(_members(3), [question])
    assert not session.submit_individual_response("m0", "Q1", "maybe")
    _split(session, "Q1", [True, False, False])
    for member in ["m0", "m1", "m2"]:
        assert session.submit_vote(member, "Q1", "maybe") is VoteStatus.INVALID_ANSWER
    result = session.aggregate([question])
    assert result.consensus_metrics.overall_consensus_rate < 100
    assert result.team_score.answered_count == 0


def test_sealed_question_rejects_further_votes():
    session = _session(3)
    _split(session, "Q1", ["A", "A", "B"])
    for member, vote in [("m0", "A"), ("m1", "A"), ("m2", "B")]:
        session.submit_vote(member, "Q1", vote)
    response = session.responses["Q1"]
    assert response.final_answer == "A"
    rounds = list(response.voting_rounds)

    assert session.submit_vote("m2", "Q1", "B") is VoteStatus.ALREADY_RESOLVED
    assert session.submit_vote("m0", "Q1", "B") is VoteStatus.ALREADY_RESOLVED
    assert response.final_answer == "A"
    assert response.voting_rounds == rounds
    assert not session.submit_individual_response("m1", "Q1", "B")


def test_non_member_vote_is_ignored():
    session = _session(2)
    _split(session, "Q1", [True, False])
    assert session.submit_vote("intruder", "Q1", True) is VoteStatus.NOT_A_MEMBER
    assert session.responses["Q1"].voting_rounds == []
    assert not session.submit_individual_response("intruder", "Q1", True)


def test_vote_without_responses_is_not_in_discussion():
    session = _session(2)
    assert session.submit_vote("m0", "Q9", True) is VoteStatus.NOT_IN_DISCUSSION
    assert session.question_state("Q9") is QuestionState.AWAITING_RESPONSES


def test_unanimous_answers_resolve_without_discussion():
    session = _session(3)
    _split(session, "Q1", ["Full", "Full"])
    assert session.question_state("Q1") is QuestionState.AWAITING_RESPONSES
    session.submit_individual_response("m2", "Q1", "Full", 4)
    response = session.responses["Q1"]
    assert response.consensus_reached
    assert response.final_answer == "Full"
    assert response.voting_rounds == []
    assert session.question_state("Q1") is QuestionState.RESOLVED_NO_DISCUSSION
    assert session.questions_needing_discussion() == []


def test_discussion_notes_are_append_only_and_member_scoped():
    session = _session(2)
    _split(session, "Q1", [True, False])
    assert session.add_discussion_note("m0", "Q1", "We have the DHF index")
    assert not session.add_discussion_note("ghost", "Q1", "hello")
    assert not session.add_discussion_note("m1", "Q1", "   ")
    assert not session.add_discussion_note("m1", "Q404", "no such question")
    notes = session.responses["Q1"].discussion_notes
    assert [n.member_id for n in notes] == ["m0"]


def test_confidence_is_clamped():
    session = _session(2)
    session.submit_individual_response("m0", "Q1", True, confidence=9)
    session.submit_individual_response("m1", "Q1", True, confidence=-3)
    responses = session.responses["Q1"].individual_responses
    assert responses["m0"].confidence == 5
    assert responses["m1"].confidence == 1


def test_advance_phase_stops_at_results_review():
    session = _session(1)
    phases = [session.advance_phase() for _ in range(6)]
    assert phases[-1].value == "results_review"
    assert phases[-2] is phases[-1]


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

@pytest.fixture
def team_questions():
    return [
        make_question("Q1", 5, critical=True, clause_ref="QMS.820.30"),
        make_question("Q2", 5, clause_ref="ISO.8.5"),
        make_question("Q3", 4, QuestionType.SELECT, clause_ref="ISO.9.2",
                      options=("None", "Partial", "Full")),
    ]


def test_team_score_uses_consensus_answers_only(team_questions):
    session = _session(3)
    _split(session, "Q1", [True, True, True])
    _split(session, "Q2", [True, False, False])
    session.add_discussion_note("m0", "Q2", "CAPA log shows effectiveness checks")
    for member, vote in [("m0", True), ("m1", True), ("m2", False)]:
        session.submit_vote(member, "Q2", vote)
    _split(session, "Q3", ["None", "Partial", "Full"])

    result = session.aggregate(team_questions)
    team = result.team_score
    assert team.answered_count == 2
    assert team.score == 71
    assert result.consensus_metrics.overall_consensus_rate == pytest.approx(200 / 3)
    assert result.consensus_metrics.time_to_consensus == {"Q2": 7}
    assert result.consensus_metrics.highest_disagreement_topics == ("Q3",)
    assert result.consensus_metrics.consensus_quality == "weak"

    # m2 answered "False" on Q2 individually
    assert result.individual_scores["m2"].score < result.individual_scores["m0"].score


def test_collaboration_blend(team_questions):
    session = _session(2)
    _split(session, "Q1", [True, True])
    _split(session, "Q2", [False, False])
    result = session.aggregate(team_questions)
    dyn = result.dynamics
    assert result.consensus_metrics.overall_consensus_rate == 100
    assert dyn.participation_balance == {"m0": 100.0, "m1": 100.0}
    assert dyn.communication_effectiveness == 0
    assert result.collaboration_score == pytest.approx(0.4 * 100 + 0.3 * 100)
    assert dyn.decision_making_speed == "fast"
    assert dyn.conflict_resolution_style == "aligned"


def test_participation_counts_discussion_bonus(team_questions):
    session = _session(2)
    _split(session, "Q1", [True, False])
    session.submit_individual_response("m0", "Q2", True)
    session.add_discussion_note("m1", "Q1", "Design review minutes are incomplete")
    result = session.aggregate(team_questions)
    # m0: 2 answers of 2 -> 100; m1: 1 answer + 0.5 note -> 75
    assert result.dynamics.participation_balance == {"m0": 100.0, "m1": 75.0}
    assert result.dynamics.communication_effectiveness == pytest.approx(12.5)


def test_role_analysis_keyed_by_member(team_questions):
    members = [
        TeamMember("a", "Ana", TeamRole.DESIGN_ENGINEER),
        TeamMember("b", "Ben", TeamRole.DESIGN_ENGINEER),
    ]
    session = TeamSession(members)
    session.submit_individual_response("a", "Q1", True, 5, "Design history file indexed and approved")
    session.submit_individual_response("b", "Q1", False, 2)
    result = session.aggregate(team_questions, role_gap_limit=1)

    assert set(result.role_analysis) == {"a", "b"}
    ana, ben = result.role_analysis["a"], result.role_analysis["b"]
    assert "Design Controls" in ana.expected_strengths
    assert ana.strength_areas == ("Design Controls",)
    assert ben.improvement_areas == ("Design Controls",)
    assert len(ben.knowledge_gaps) == 1
    assert ana.contribution_quality == 100
    assert ben.contribution_quality == 40
    assert any("Critical" in i for i in ben.role_specific_insights)


def test_recommendations(team_questions):
    session = _session(2)
    _split(session, "Q1", [True, False])
    _split(session, "Q2", [False, True])
    result = session.aggregate(team_questions)
    types = [r.type for r in result.recommendations]
    assert "communication" in types
    assert "training" in types
    assert len(result.recommendations) <= 5


def test_aggregate_ignores_out_of_scope_questions(team_questions):
    session = _session(2)
    _split(session, "Q1", [True, True])
    _split(session, "ELSEWHERE", [True, True])
    result = aggregate_team(session.responses, session.members, team_questions)
    assert result.consensus_metrics.overall_consensus_rate == 100
    assert result.team_score.answered_count == 1


def test_empty_session_aggregates_to_neutral_values(team_questions):
    result = aggregate_team({}, _members(2), team_questions)
    assert result.team_score.score == 0
    assert result.consensus_metrics.overall_consensus_rate == 0
    assert result.dynamics.participation_balance == {"m0": 0.0, "m1": 0.0}
    assert result.dynamics.conflict_resolution_style == "unresolved"


def test_frameworks_flow_through_team_scores():
    q = make_question("Q1", 5, frameworks=(Framework.MDR,))
    session = _session(1)
    session.submit_individual_response("m0", "Q1", True)
    result = session.aggregate([q])
    assert result.team_score.framework_scores["MDR"].score == 100
