"""
Interview Preparation - inspector interview questions for audit rehearsal.

Each inspector role has a bank of questions. `generate_interview_questions`
keeps the questions tagged with a selected framework, puts those that touch a
weak area first (easier questions first within each tier), appends targeted
follow-ups for specific weaknesses and caps the list at `max_questions`.

Weak areas are the clause titles of the gaps the scoring engine finds in the
submitted responses, most severe first.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from backend.readiness.catalog import as_framework, get_questions
from backend.readiness.context import AssessmentResponse, Framework, Question
from backend.readiness.scoring import score

logger = logging.getLogger(__name__)

DEFAULT_MAX_QUESTIONS = 8

DOCUMENT_CONTROL_AREA = "Documentation Requirements"
CAPA_AREA = "Corrective and Preventive Action"


class InspectorRole(Enum):
    LEAD_INSPECTOR = "lead_inspector"
    QUALITY_SPECIALIST = "quality_specialist"
    TECHNICAL_REVIEWER = "technical_reviewer"
    COMPLIANCE_OFFICER = "compliance_officer"


class Difficulty(Enum):
    BASIC = "basic"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


_DIFFICULTY_ORDER = {Difficulty.BASIC: 1, Difficulty.INTERMEDIATE: 2, Difficulty.ADVANCED: 3}


@dataclass(frozen=True)
class InterviewQuestion:
    id: str
    category: str
    question: str
    expected_response: str
    difficulty: Difficulty
    frameworks: Tuple[Framework, ...]
    role: InspectorRole
    focus_areas: Tuple[str, ...] = ()
    follow_up_questions: Tuple[str, ...] = ()
    common_mistakes: Tuple[str, ...] = ()
    clause_references: Tuple[str, ...] = ()
    tips: Tuple[str, ...] = ()


_F = Framework
_R = InspectorRole
_D = Difficulty


# ---------------------------------------------------------------------------
# Question bank
# ---------------------------------------------------------------------------

QUESTION_BANK: Dict[InspectorRole, List[InterviewQuestion]] = {
    _R.LEAD_INSPECTOR: [
        InterviewQuestion(
            id="lead_001",
            category="Management Commitment",
            question="How does your organization demonstrate management commitment to the "
                     "quality management system?",
            expected_response="Quality policy, resourcing of quality activities, regular "
                              "management reviews of quality metrics and visible leadership "
                              "participation in quality decisions.",
            difficulty=_D.BASIC,
            frameworks=(_F.ISO_13485, _F.CFR_820),
            role=_R.LEAD_INSPECTOR,
            focus_areas=("Management Review",),
            follow_up_questions=("Can you show me evidence of management review meetings?",
                                 "How are quality objectives communicated?"),
            common_mistakes=("Citing the quality policy without concrete actions",
                             "No specific examples of resource allocation"),
            clause_references=("ISO 13485:5.1", "21 CFR 820.20"),
            tips=("Bring recent management review minutes",
                  "Have quality KPIs ready"),
        ),
        InterviewQuestion(
            id="lead_002",
            category="Risk Management",
            question="Describe your approach to risk management and how it integrates "
                     "with your QMS.",
            expected_response="ISO 14971 risk management across the lifecycle, feeding "
                              "design controls and change control, reviewed as post-market "
                              "data arrives.",
            difficulty=_D.INTERMEDIATE,
            frameworks=(_F.ISO_13485, _F.CFR_820, _F.ISO_14155),
            role=_R.LEAD_INSPECTOR,
            focus_areas=("Risk Management",),
            follow_up_questions=("How do you handle residual risks that cannot be mitigated?",
                                 "Walk me through a specific risk analysis."),
            common_mistakes=("Confusing business risk with product safety risk",
                             "No process for maintaining the risk management file"),
            clause_references=("ISO 14971", "ISO 13485:7.1", "21 CFR 820.30(g)"),
            tips=("Know your risk acceptability criteria",),
        ),
        InterviewQuestion(
            id="lead_003",
            category="Outsourced Processes",
            question="How do you control outsourced processes and ensure they meet "
                     "quality requirements?",
            expected_response="Approved supplier list, quality agreements, risk-based "
                              "supplier audits, incoming inspection and supplier metrics.",
            difficulty=_D.INTERMEDIATE,
            frameworks=(_F.ISO_13485, _F.CFR_820),
            role=_R.LEAD_INSPECTOR,
            focus_areas=("Control of Externally Provided Processes, Products and Services",),
            follow_up_questions=("What criteria do you use for supplier qualification?",
                                 "How do you handle supplier corrective actions?"),
            common_mistakes=("Treating all suppliers alike regardless of criticality",
                             "No evidence of ongoing supplier monitoring"),
            clause_references=("ISO 13485:7.4", "21 CFR 820.50"),
            tips=("Classify suppliers by criticality",),
        ),
    ],
    _R.QUALITY_SPECIALIST: [
        InterviewQuestion(
            id="qual_001",
            category="Document Control",
            question="Walk me through document control, including how the latest versions "
                     "are available at points of use.",
            expected_response="Unique identifiers, revision tracking, approval workflow, "
                              "controlled distribution and retrieval of obsolete documents.",
            difficulty=_D.BASIC,
            frameworks=(_F.ISO_13485, _F.CFR_820),
            role=_R.QUALITY_SPECIALIST,
            focus_areas=(DOCUMENT_CONTROL_AREA,),
            follow_up_questions=("How do you handle emergency document changes?",
                                 "How are external documents controlled?"),
            common_mistakes=("Manual tracking prone to error",
                             "No control of obsolete documents"),
            clause_references=("ISO 13485:4.2.4", "21 CFR 820.40"),
            tips=("Demonstrate the document management system live",),
        ),
        InterviewQuestion(
            id="qual_002",
            category="Corrective and Preventive Actions",
            question="Describe your CAPA process and how you investigate and resolve "
                     "quality problems.",
            expected_response="Problem identification, structured root cause analysis, "
                              "corrective and preventive actions and verified effectiveness, "
                              "tracked to closure.",
            difficulty=_D.INTERMEDIATE,
            frameworks=(_F.ISO_13485, _F.CFR_820),
            role=_R.QUALITY_SPECIALIST,
            focus_areas=(CAPA_AREA,),
            follow_up_questions=("When is a CAPA required rather than a correction?",
                                 "Show me a CAPA effectiveness check."),
            common_mistakes=("Confusing correction with corrective action",
                             "Shallow root cause analysis"),
            clause_references=("ISO 13485:8.5.2", "ISO 13485:8.5.3", "21 CFR 820.100"),
            tips=("Bring complete CAPA records",),
        ),
        InterviewQuestion(
            id="qual_003",
            category="Internal Audit",
            question="How does your internal audit program cover the whole QMS?",
            expected_response="Risk-based annual schedule, trained independent auditors, "
                              "tracked findings and results feeding management review.",
            difficulty=_D.INTERMEDIATE,
            frameworks=(_F.ISO_13485, _F.CFR_820),
            role=_R.QUALITY_SPECIALIST,
            focus_areas=("Internal Audit",),
            follow_up_questions=("How do you ensure auditor independence?",
                                 "How are findings classified and closed?"),
            common_mistakes=("Infrequent audits of high-risk areas",
                             "Auditors auditing their own work"),
            clause_references=("ISO 13485:8.2.4", "21 CFR 820.22"),
            tips=("Have the audit schedule and auditor qualifications ready",),
        ),
    ],
    _R.TECHNICAL_REVIEWER: [
        InterviewQuestion(
            id="tech_001",
            category="Design Controls",
            question="Explain your design control process and how design outputs are shown "
                     "to meet design inputs.",
            expected_response="Stage-gated inputs, outputs, reviews, verification, "
                              "validation and transfer, traced through a requirements matrix.",
            difficulty=_D.ADVANCED,
            frameworks=(_F.CFR_820, _F.ISO_13485),
            role=_R.TECHNICAL_REVIEWER,
            focus_areas=("Design Controls",),
            follow_up_questions=("How are design changes handled during development?",
                                 "How is design transfer controlled?"),
            common_mistakes=("Confusing verification with validation",
                             "Poor input-to-output traceability"),
            clause_references=("21 CFR 820.30", "ISO 13485:7.3"),
            tips=("Prepare DHF examples",),
        ),
        InterviewQuestion(
            id="tech_002",
            category="Verification and Validation",
            question="How do you ensure clinical evidence supports the intended use?",
            expected_response="Verification against design inputs, validation against user "
                              "needs through clinical evaluation or investigation, with "
                              "protocols and statistical plans.",
            difficulty=_D.ADVANCED,
            frameworks=(_F.CFR_820, _F.ISO_13485, _F.MDR, _F.ISO_14155),
            role=_R.TECHNICAL_REVIEWER,
            focus_areas=("Design Controls", "Clinical Investigation"),
            follow_up_questions=("How do you decide what clinical data is needed?",
                                 "How is post-market clinical follow-up planned?"),
            common_mistakes=("Using bench testing as validation",
                             "No acceptance criteria for verification"),
            clause_references=("21 CFR 820.30(f)", "ISO 13485:7.3.6", "ISO 14155"),
            tips=("Have clinical evaluation reports at hand",),
        ),
        InterviewQuestion(
            id="tech_003",
            category="Software Validation",
            question="How do you manage software lifecycle processes and validation?",
            expected_response="IEC 62304 safety classification, planning, requirements, "
                              "architecture, integration testing and software validation.",
            difficulty=_D.ADVANCED,
            frameworks=(_F.CFR_820, _F.ISO_13485, _F.MDR),
            role=_R.TECHNICAL_REVIEWER,
            focus_areas=("Medical Device Software",),
            follow_up_questions=("How are software changes controlled?",
                                 "How do you manage cybersecurity risk?"),
            common_mistakes=("Validating software like hardware",
                             "No software safety classification rationale"),
            clause_references=("IEC 62304", "21 CFR 820.30"),
            tips=("Know your software safety class rationale",),
        ),
    ],
    _R.COMPLIANCE_OFFICER: [
        InterviewQuestion(
            id="comp_001",
            category="Regulatory Requirements",
            question="How do you stay current with regulatory requirements?",
            expected_response="Regulatory intelligence subscriptions and associations, "
                              "impact assessment of changes, implementation through change "
                              "control.",
            difficulty=_D.INTERMEDIATE,
            frameworks=(_F.ISO_13485, _F.CFR_820, _F.MDR),
            role=_R.COMPLIANCE_OFFICER,
            follow_up_questions=("How do you assess the impact of a regulatory change?",),
            common_mistakes=("Relying on informal sources",),
            clause_references=("ISO 13485:8.2.1", "21 CFR 820.20(b)"),
            tips=("Show a recent regulatory change you implemented",),
        ),
        InterviewQuestion(
            id="comp_002",
            category="Post-Market Surveillance",
            question="Describe your post-market surveillance system.",
            expected_response="Complaint handling, vigilance reporting, periodic safety "
                              "reports, trending and feedback into design and risk management.",
            difficulty=_D.INTERMEDIATE,
            frameworks=(_F.ISO_13485, _F.CFR_820, _F.MDR),
            role=_R.COMPLIANCE_OFFICER,
            focus_areas=("Post-Market Surveillance", "Complaint Files", "Feedback"),
            follow_up_questions=("When does a complaint require regulatory reporting?",
                                 "How are field corrections implemented?"),
            common_mistakes=("Treating complaints as customer service issues",
                             "No trend analysis"),
            clause_references=("ISO 13485:8.2.1", "21 CFR 820.198", "MDR Articles 83-92"),
            tips=("Know your reporting timelines",),
        ),
        InterviewQuestion(
            id="comp_003",
            category="Change Control",
            question="Walk me through change control and how changes are kept from "
                     "affecting product quality.",
            expected_response="Change requests, impact and risk assessment, approval by "
                              "significance, validation as needed and effectiveness checks.",
            difficulty=_D.INTERMEDIATE,
            frameworks=(_F.ISO_13485, _F.CFR_820),
            role=_R.COMPLIANCE_OFFICER,
            focus_areas=("Design Controls", "Process Validation"),
            follow_up_questions=("How do you classify change significance?",),
            common_mistakes=("Implementing changes before approval",),
            clause_references=("ISO 13485:4.1.4", "21 CFR 820.70(b)", "ISO 13485:7.3.9"),
            tips=("Bring examples of approved changes of each class",),
        ),
    ],
}


def _targeted_questions(weak: Sequence[str], role: InspectorRole,
                        frameworks: Tuple[Framework, ...]) -> List[InterviewQuestion]:
    targeted: List[InterviewQuestion] = []
    if DOCUMENT_CONTROL_AREA in weak and role is _R.QUALITY_SPECIALIST:
        targeted.append(InterviewQuestion(
            id="targeted_doc_001",
            category="Document Control",
            question="Your assessment shows gaps in document control. How do you make sure "
                     "obsolete documents are not used by mistake?",
            expected_response="Obsolete documents are withdrawn from points of use, marked "
                              "and archived; the document system blocks obsolete versions.",
            difficulty=_D.INTERMEDIATE,
            frameworks=frameworks,
            role=role,
            focus_areas=(DOCUMENT_CONTROL_AREA,),
            follow_up_questions=("What happens when a controlled document is printed?",),
            common_mistakes=("Relying on people to discard old versions",),
            clause_references=("ISO 13485:4.2.4", "21 CFR 820.40"),
            tips=("Demonstrate document retrieval",),
        ))
    if CAPA_AREA in weak and role in (_R.QUALITY_SPECIALIST, _R.COMPLIANCE_OFFICER):
        targeted.append(InterviewQuestion(
            id="targeted_capa_001",
            category="CAPA Follow-up",
            question="Your assessment shows room for improvement in corrective actions. "
                     "Walk me through your most recent CAPA and how you verified it worked.",
            expected_response="A specific CAPA: root cause, corrective and preventive "
                              "actions, and effectiveness measured against defined metrics.",
            difficulty=_D.ADVANCED,
            frameworks=frameworks,
            role=role,
            focus_areas=(CAPA_AREA,),
            follow_up_questions=("How long do you monitor effectiveness?",
                                 "What would make you reopen this CAPA?"),
            common_mistakes=("Declaring effectiveness too early",),
            clause_references=("ISO 13485:8.5.2", "21 CFR 820.100"),
            tips=("Be specific about metrics",),
        ))
    return targeted


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

def identify_weak_areas(responses: Iterable[AssessmentResponse],
                        questions: Optional[Sequence[Question]] = None) -> Tuple[str, ...]:
    """Clause titles of the gaps in `responses`, most severe first, without repeats."""
    result = score(responses, questions if questions is not None else get_questions())
    return tuple(dict.fromkeys(g.clause_title for g in result.gaps))


def generate_interview_questions(responses: Iterable[AssessmentResponse],
                                 frameworks: Iterable[Union[Framework, str]],
                                 role: InspectorRole,
                                 max_questions: int = DEFAULT_MAX_QUESTIONS,
                                 include_all: bool = False,
                                 questions: Optional[Sequence[Question]] = None
                                 ) -> List[InterviewQuestion]:
    if include_all:
        selected = tuple(Framework)
    else:
        selected = tuple(dict.fromkeys(fw for fw in (as_framework(v) for v in frameworks) if fw))

    weak = identify_weak_areas(responses, questions)
    available = [q for q in QUESTION_BANK[role] if set(q.frameworks).intersection(selected)]
    prioritized = sorted(
        available,
        key=lambda q: (0 if set(q.focus_areas).intersection(weak) else 1,
                       _DIFFICULTY_ORDER[q.difficulty]),
    )

    combined: List[InterviewQuestion] = []
    seen = set()
    for q in prioritized + _targeted_questions(weak, role, selected):
        if q.id not in seen:
            seen.add(q.id)
            combined.append(q)

    logger.debug("Interview set for %s: %d question(s), weak areas %s",
                 role.value, min(len(combined), max_questions), ", ".join(weak) or "none")
    return combined[:max(0, max_questions)]
