"""
Report Artifacts - markdown deliverables, JSON export and the ZIP bundle.

Every artifact is rendered from a ScoreResult as returned by the scoring
engine; nothing here recomputes scores or re-ranks gaps.
"""

import io
import json
import zipfile
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from fastapi.encoders import jsonable_encoder

from backend.readiness.context import (
    ENGINE_VERSION, AssessmentResponse, Gap, RiskClassification, ScoreResult,
)

DISCLAIMER = (
    "**Disclaimer**: This document is for educational purposes only and does not "
    "constitute legal or regulatory advice."
)

CAPA_ROWS = 10
INTERVIEW_GAPS = 3


def _stamp(generated_at: Optional[datetime]) -> str:
    return (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M")


def _priority(rank: int) -> str:
    if rank < 2:
        return "HIGH"
    if rank < 4:
        return "MEDIUM"
    return "LOW"


def _header(title: str, result: ScoreResult, generated_at: Optional[datetime]) -> List[str]:
    return [
        f"# {title}",
        "",
        f"**Generated**: {_stamp(generated_at)}",
        f"**Overall Score**: {result.score}% ({result.status.value})",
        f"**Critical Issues**: {'Yes' if result.critical_hit else 'No'}",
        "",
    ]


# ---------------------------------------------------------------------------
# Markdown deliverables
# ---------------------------------------------------------------------------

def generate_gap_list(result: ScoreResult, generated_at: Optional[datetime] = None) -> str:
    lines = _header("Compliance Gap Analysis Report", result, generated_at)
    lines += [
        "## Executive Summary",
        "",
        f"This assessment identified {len(result.gaps)} gap(s); the "
        f"{len(result.top_gaps)} highest-impact are listed first.",
        "Critical compliance gaps require immediate attention."
        if result.critical_hit else
        "Focus on the highest-impact gaps below to improve audit readiness.",
        "",
        "## Priority Gaps (Ranked by Impact)",
        "",
    ]
    if not result.gaps:
        lines += ["No gaps identified.", ""]

    for rank, gap in enumerate(result.gaps):
        lines += [
            f"### {rank + 1}. {gap.clause_ref} - {_priority(rank)} PRIORITY",
            "",
            f"**Gap Description**: {gap.prompt}",
            f"**Category**: {gap.clause_title}",
            f"**Impact Score**: {gap.deficit:.1f}",
            f"**Critical**: {'Yes' if gap.critical else 'No'}",
            "",
        ]
        if gap.suggested_evidence:
            lines.append("**Suggested Evidence**:")
            lines += [f"- {e}" for e in gap.suggested_evidence]
            lines.append("")
        lines += ["---", ""]

    lines += [
        "## Next Steps",
        "",
        "1. Address HIGH priority gaps immediately",
        "2. Develop action plans for MEDIUM priority items",
        "3. Schedule a follow-up assessment in 30-60 days",
        "",
        DISCLAIMER,
        "",
    ]
    return "\n".join(lines)


def generate_capa_plan(result: ScoreResult, generated_at: Optional[datetime] = None) -> str:
    lines = _header("Corrective and Preventive Action Plan", result, generated_at)
    lines += [
        "| Problem | Clause | Root Cause | Correction | Corrective Action "
        "| Preventive Action | Owner | Due Date | Effectiveness Verification |",
        "|---|---|---|---|---|---|---|---|---|",
    ]
    for gap in result.gaps[:CAPA_ROWS]:
        problem = gap.prompt.replace("|", "/")
        lines.append(
            f"| {problem} | {gap.clause_ref} | TBD | TBD | TBD | TBD | TBD | TBD | TBD |"
        )
    lines += [
        "",
        "## Instructions for Completion",
        "",
        "1. **Root Cause**: analyse the underlying causes of each gap",
        "2. **Correction**: immediate action to contain the gap",
        "3. **Corrective Action**: long-term fix preventing recurrence",
        "4. **Preventive Action**: measures against similar issues elsewhere",
        "5. **Effectiveness Verification**: objective evidence the action worked",
        "",
    ]
    if result.risk_assessment.mitigation_priority:
        lines += ["## Mitigation Priority", ""]
        lines += [f"{i}. {item}" for i, item in
                  enumerate(result.risk_assessment.mitigation_priority, start=1)]
        lines.append("")
    lines += [DISCLAIMER, ""]
    return "\n".join(lines)


def generate_interview_script(result: ScoreResult,
                              generated_at: Optional[datetime] = None) -> str:
    focus: Sequence[Gap] = result.top_gaps[:INTERVIEW_GAPS]
    lines = _header("Audit Interview Preparation Script", result, generated_at)
    lines += ["## Interview Strategy Overview", ""]
    if focus:
        lines.append("Focus preparation on these priority areas:")
        lines += [f"- {g.clause_ref}: {g.prompt}" for g in focus]
    else:
        lines.append("No priority gaps; prepare to walk auditors through the QMS end to end.")
    lines += ["", "## Gap-Specific Questions", ""]

    for i, gap in enumerate(focus, start=1):
        lines += [
            f"### Gap {i}: {gap.clause_ref} ({gap.clause_title})",
            "",
            "**Auditor Might Ask:**",
            f"- \"Show me objective evidence for: {gap.prompt.rstrip('?')}\"",
            "- \"How do you ensure this requirement is consistently met?\"",
            "- \"When was this last reviewed or updated?\"",
            "",
            "**Response Strategy:**",
            "- Acknowledge the current state honestly",
            "- Describe improvement actions underway and their timeline",
            "- Show interim controls where they exist",
            "",
        ]
        if gap.suggested_evidence:
            lines.append("**Evidence to Have Ready:**")
            lines += [f"- {e}" for e in gap.suggested_evidence]
            lines.append("")
        lines += ["---", ""]

    lines += [
        "## General Interview Tips",
        "",
        "- Review relevant procedures and records beforehand",
        "- Answer the question asked and offer records rather than opinions",
        "- Coordinate consistent messaging with the rest of the team",
        "",
        DISCLAIMER,
        "",
    ]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# JSON + bundle
# ---------------------------------------------------------------------------

def readiness_json(result: ScoreResult,
                   responses: Optional[Sequence[AssessmentResponse]] = None,
                   classification: Optional[RiskClassification] = None,
                   generated_at: Optional[datetime] = None) -> str:
    payload = {
        "version": ENGINE_VERSION,
        "generated_at": (generated_at or datetime.now()).isoformat(),
        "result": jsonable_encoder(result),
        "classification": jsonable_encoder(classification),
        "responses": jsonable_encoder(list(responses or [])),
    }
    return json.dumps(payload, indent=2)


def create_export_data(result: ScoreResult,
                       responses: Optional[Sequence[AssessmentResponse]] = None,
                       classification: Optional[RiskClassification] = None,
                       generated_at: Optional[datetime] = None) -> Dict[str, str]:
    """Filename -> content for every artifact."""
    return {
        "gap_list.md": generate_gap_list(result, generated_at),
        "capa_plan.md": generate_capa_plan(result, generated_at),
        "audit_interview_script.md": generate_interview_script(result, generated_at),
        "readiness.json": readiness_json(result, responses, classification, generated_at),
    }


def build_export_zip(result: ScoreResult,
                     responses: Optional[Sequence[AssessmentResponse]] = None,
                     classification: Optional[RiskClassification] = None,
                     generated_at: Optional[datetime] = None) -> bytes:
    """ZIP with markdown files under deliverables/ and readiness.json at the root."""
    files = create_export_data(result, responses, classification, generated_at)
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, content in files.items():
            arcname = name if name.endswith(".json") else f"deliverables/{name}"
            zf.writestr(arcname, content)
    return buf.getvalue()
