"""
Readiness Engine - medical device QMS audit readiness scoring

Modules:
    context         - Question, answer and result dataclasses
    catalog         - Framework-tagged question catalog and clause map
    classification  - Device risk classifier
    weights         - Risk-aware weight resolution
    scoring         - Weighted score, critical gating, breakdowns
    gaps            - Gap ranking
    assessment      - Qualitative risk / maturity assessment
    team            - Team voting, consensus and aggregation
    checklists      - Preparation checklists and week-by-week guides
    interview       - Inspector interview questions by role
    extraction      - CSV / Excel response ingestion
    artifacts       - Markdown / JSON deliverables and ZIP bundle
    chart_generator - Readiness charts
    docx_report     - Word report builder
"""

from backend.readiness.context import (
    ENGINE_VERSION, AssessmentResponse, DeviceAttributes, Framework, Question,
    QuestionType, RiskClassification, RiskLevel, ScoreResult, Status,
)
from backend.readiness.catalog import (
    get_filtered_questions, get_question_by_id, get_questions,
)
from backend.readiness.classification import classify, classify_risk
from backend.readiness.weights import resolve_weight
from backend.readiness.scoring import score
from backend.readiness.assessment import assess_risk
from backend.readiness.team import TeamMember, TeamRole, TeamSession, VoteStatus, aggregate_team
from backend.readiness.checklists import get_filtered_checklists, get_preparation_guide
from backend.readiness.interview import InspectorRole, generate_interview_questions
