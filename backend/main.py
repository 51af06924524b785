"""
FastAPI Main Application
Provides REST endpoints for audit readiness scoring, team consensus and exports
"""

import logging
from typing import List, Optional, Union

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from backend.config import settings
from backend.logging_config import setup_logging
from backend.readiness.artifacts import build_export_zip
from backend.readiness.catalog import (
    FRAMEWORK_DESCRIPTIONS, FRAMEWORK_LABELS, get_filtered_questions,
    get_question_count_by_framework,
)
from backend.readiness.checklists import (
    get_checklists_by_priority, get_filtered_checklists, get_preparation_guide,
)
from backend.readiness.classification import classify_risk, get_risk_specific_recommendations
from backend.readiness.context import (
    ENGINE_VERSION, AssessmentResponse, DeviceAttributes, Question, RiskClassification,
)
from backend.readiness.docx_report import build_docx_report
from backend.readiness.extraction import load_responses
from backend.readiness.interview import (
    DEFAULT_MAX_QUESTIONS, InspectorRole, generate_interview_questions,
)
from backend.readiness.scoring import score
from backend.readiness.team import TeamMember, TeamRole, TeamSession

logger = logging.getLogger(__name__)

AnswerValue = Union[bool, int, float, str]

# Initialize FastAPI
app = FastAPI(
    title="Audit Readiness API",
    description="Weighted QMS audit readiness scoring with team consensus",
    version=ENGINE_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.on_event("startup")
async def startup_event():
    setup_logging(settings.log_level)
    logger.info("%s %s ready", settings.app_name, ENGINE_VERSION)


# ============================================================================
# REQUEST BODIES
# ============================================================================

class DeviceAttributesBody(BaseModel):
    fda_class: Optional[str] = None
    eu_class: Optional[str] = None
    is_sterile: bool = False
    is_measuring: bool = False
    has_active_components: bool = False
    is_drug_device: bool = False
    device_category: Optional[str] = None


class ResponseBody(BaseModel):
    question_id: str
    answer: AnswerValue
    timestamp: Optional[str] = None


class ScoreRequest(BaseModel):
    responses: List[ResponseBody] = Field(default_factory=list)
    frameworks: List[str] = Field(default_factory=list)
    include_all: bool = False
    device: Optional[DeviceAttributesBody] = None
    top_n: Optional[int] = None


class TeamMemberBody(BaseModel):
    id: str
    name: str
    role: str
    department: str = ""
    is_leader: bool = False


class IndividualResponseBody(BaseModel):
    member_id: str
    question_id: str
    answer: AnswerValue
    confidence: int = 3
    rationale: str = ""


class DiscussionNoteBody(BaseModel):
    member_id: str
    question_id: str
    text: str


class VoteBody(BaseModel):
    member_id: str
    question_id: str
    vote: AnswerValue


class TeamScoreRequest(BaseModel):
    members: List[TeamMemberBody]
    responses: List[IndividualResponseBody] = Field(default_factory=list)
    notes: List[DiscussionNoteBody] = Field(default_factory=list)
    votes: List[VoteBody] = Field(default_factory=list)
    frameworks: List[str] = Field(default_factory=list)
    include_all: bool = False
    device: Optional[DeviceAttributesBody] = None
    top_n: Optional[int] = None


class InterviewRequest(BaseModel):
    role: str
    responses: List[ResponseBody] = Field(default_factory=list)
    frameworks: List[str] = Field(default_factory=list)
    include_all: bool = False
    max_questions: int = DEFAULT_MAX_QUESTIONS


# ============================================================================
# HELPERS
# ============================================================================

def _classification(device: Optional[DeviceAttributesBody]) -> Optional[RiskClassification]:
    if device is None:
        return None
    return classify_risk(DeviceAttributes(**device.model_dump()))


def _questions(frameworks: List[str], include_all: bool) -> List[Question]:
    return get_filtered_questions(frameworks, include_all)


def _top_n(value: Optional[int]) -> int:
    return settings.default_top_gaps if value is None else value


def _score_request(body: ScoreRequest):
    responses = [AssessmentResponse(r.question_id, r.answer, r.timestamp) for r in body.responses]
    classification = _classification(body.device)
    result = score(responses, _questions(body.frameworks, body.include_all),
                   classification, _top_n(body.top_n))
    return result, responses, classification


# ============================================================================
# REST API ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "status": "online",
        "service": settings.app_name,
        "version": ENGINE_VERSION,
    }


@app.get("/api/frameworks")
async def list_frameworks():
    counts = get_question_count_by_framework()
    return [
        {
            "id": fw.value,
            "label": FRAMEWORK_LABELS[fw],
            "description": FRAMEWORK_DESCRIPTIONS[fw],
            "question_count": counts[fw],
        }
        for fw in counts
    ]


@app.get("/api/questions")
async def list_questions(frameworks: str = "", include_all: bool = False):
    """Filtered catalog; `frameworks` is a comma-separated list of framework ids."""
    selected = [f.strip() for f in frameworks.split(",") if f.strip()]
    return jsonable_encoder(_questions(selected, include_all))


@app.post("/api/classify")
async def classify_device(body: DeviceAttributesBody):
    classification = _classification(body)
    return {
        "classification": jsonable_encoder(classification),
        "recommendations": get_risk_specific_recommendations(classification),
    }


@app.post("/api/score")
async def score_assessment(body: ScoreRequest):
    result, _, classification = _score_request(body)
    return {
        "result": jsonable_encoder(result),
        "classification": jsonable_encoder(classification),
    }


@app.post("/api/responses/upload")
async def upload_responses(file: UploadFile = File(...)):
    """Parse a CSV / TSV / Excel file of answers into responses."""
    content = await file.read()
    try:
        extracted = load_responses(content, file.filename or "upload.csv")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "responses": jsonable_encoder(extracted.responses),
        "columns_detected": extracted.columns_detected,
        "warnings": extracted.warnings,
        "rows_read": extracted.rows_read,
    }


@app.post("/api/export")
async def export_bundle(body: ScoreRequest):
    result, responses, classification = _score_request(body)
    data = build_export_zip(result, responses, classification)
    return Response(
        content=data,
        media_type="application/zip",
        headers={"Content-Disposition": 'attachment; filename="audit_readiness_export.zip"'},
    )


@app.post("/api/export/docx")
async def export_docx(body: ScoreRequest):
    result, _, classification = _score_request(body)
    data = build_docx_report(result, classification)
    return Response(
        content=data,
        media_type="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        headers={"Content-Disposition": 'attachment; filename="audit_readiness_report.docx"'},
    )


@app.post("/api/team/score")
async def team_score(body: TeamScoreRequest):
    """Replay responses, notes and votes into a session, then aggregate."""
    try:
        members = [TeamMember(m.id, m.name, TeamRole(m.role), m.department, m.is_leader)
                   for m in body.members]
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    questions = _questions(body.frameworks, body.include_all)
    session = TeamSession(members, questions)
    for r in body.responses:
        session.submit_individual_response(r.member_id, r.question_id, r.answer,
                                           r.confidence, r.rationale)
    for n in body.notes:
        session.add_discussion_note(n.member_id, n.question_id, n.text)
    vote_statuses = [session.submit_vote(v.member_id, v.question_id, v.vote).value
                     for v in body.votes]

    result = session.aggregate(
        questions,
        _classification(body.device),
        _top_n(body.top_n),
        settings.role_gap_limit,
    )
    return {
        "result": jsonable_encoder(result),
        "vote_statuses": vote_statuses,
        "question_states": {qid: session.question_state(qid).value for qid in session.responses},
        "needs_discussion": session.questions_needing_discussion(),
    }


@app.get("/api/checklists")
async def list_checklists(device_category: str, risk_class: str, frameworks: str = ""):
    """Preparation checklist for one device; `frameworks` is comma-separated."""
    selected = [f.strip() for f in frameworks.split(",") if f.strip()]
    items = get_filtered_checklists(device_category, risk_class, selected)
    return {
        "items": jsonable_encoder(items),
        "by_priority": {
            priority: [item.id for item in group]
            for priority, group in get_checklists_by_priority(items).items()
        },
        "total_estimated_hours": sum(item.estimated_hours for item in items),
        "guide": jsonable_encoder(get_preparation_guide(device_category, risk_class)),
    }


@app.post("/api/interview/questions")
async def interview_questions(body: InterviewRequest):
    """Inspector questions for one role, weakest areas first."""
    try:
        role = InspectorRole(body.role)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    responses = [AssessmentResponse(r.question_id, r.answer, r.timestamp) for r in body.responses]
    questions = generate_interview_questions(
        responses, body.frameworks, role, body.max_questions, body.include_all)
    return jsonable_encoder(questions)
