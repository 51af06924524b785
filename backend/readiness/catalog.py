"""
Question Catalog - the fixed, framework-tagged audit readiness questionnaire.

Covers key 21 CFR 820, ISO 13485, EU MDR/IVDR and ISO 14155 expectations.
Weights use the 1-5 scale. Select options are ordered worst to best: the
first option earns nothing, the last earns the full weight.
"""

from typing import Dict, Iterable, List, Optional, Union

from backend.readiness.context import ClauseInfo, Framework, Question, QuestionType


_F = Framework
_YN = QuestionType.YES_NO
_SEL = QuestionType.SELECT
_TXT = QuestionType.TEXT

# Shared multiplier tables (device class -> factor)
_DESIGN_MULTIPLIERS = {
    "Class I": 0.8, "Class II": 1.2, "Class III": 1.5,
    "Class IIa": 1.1, "Class IIb": 1.3,
}
_RISK_FILE_MULTIPLIERS = {
    "Class I": 1.0, "Class II": 1.2, "Class III": 1.5,
    "Class IIa": 1.1, "Class IIb": 1.3,
}
_SURVEILLANCE_MULTIPLIERS = {
    "Class I": 0.9, "Class II": 1.1, "Class III": 1.4,
    "Class IIa": 1.0, "Class IIb": 1.3,
}
_PROCESS_MULTIPLIERS = {
    "Class I": 1.0, "Class II": 1.1, "Class III": 1.3,
    "Class IIa": 1.1, "Class IIb": 1.2,
}
_SOFTWARE_MULTIPLIERS = {
    "Class I": 0.9, "Class II": 1.2, "Class III": 1.4,
    "Class IIa": 1.1, "Class IIb": 1.3,
}


# ---------------------------------------------------------------------------
# Questionnaire
# ---------------------------------------------------------------------------

QUESTIONS: List[Question] = [
    # === DESIGN CONTROLS ===
    Question(
        id="Q1",
        prompt="Do you maintain a Design History File (DHF) with complete traceability from user needs to design outputs?",
        type=_YN, weight=5, clause_ref="QMS.820.30", critical=True,
        frameworks=(_F.CFR_820, _F.ISO_13485, _F.MDR),
        risk_multipliers=_DESIGN_MULTIPLIERS,
    ),
    Question(
        id="Q2",
        prompt="Are design controls implemented throughout the product development lifecycle?",
        type=_YN, weight=5, clause_ref="QMS.820.30", critical=True,
        frameworks=(_F.CFR_820, _F.ISO_13485, _F.MDR),
        risk_multipliers=_DESIGN_MULTIPLIERS,
        help_text="Design controls are required for Class II and Class III devices.",
    ),
    Question(
        id="Q3",
        prompt="Do you conduct formal design reviews at appropriate stages of development?",
        type=_YN, weight=4, clause_ref="QMS.820.30",
        frameworks=(_F.CFR_820, _F.ISO_13485),
    ),
    Question(
        id="Q4",
        prompt="Are design verification and validation activities documented and executed?",
        type=_YN, weight=5, clause_ref="QMS.820.30", critical=True,
        frameworks=(_F.CFR_820, _F.ISO_13485, _F.MDR),
        risk_multipliers=_DESIGN_MULTIPLIERS,
    ),

    # === MANAGEMENT & CAPA ===
    Question(
        id="Q5",
        prompt="How frequently do you conduct management reviews of the quality management system?",
        type=_SEL, weight=3, clause_ref="ISO.9.3",
        frameworks=(_F.ISO_13485, _F.CFR_820),
        options=("Not conducted", "Annually", "Semi-annually", "Quarterly", "Monthly"),
    ),
    Question(
        id="Q6",
        prompt="Are supplier CAPAs verified for effectiveness before closure?",
        type=_YN, weight=4, clause_ref="ISO.8.5",
        frameworks=(_F.ISO_13485, _F.CFR_820),
    ),
    Question(
        id="Q7",
        prompt="Do you maintain a risk management file throughout the product lifecycle?",
        type=_YN, weight=5, clause_ref="ISO.14971", critical=True,
        frameworks=(_F.ISO_13485, _F.MDR, _F.IVDR, _F.CFR_820),
        risk_multipliers=_RISK_FILE_MULTIPLIERS,
    ),
    Question(
        id="Q8",
        prompt="Are post-market surveillance activities systematically conducted and documented?",
        type=_YN, weight=4, clause_ref="ISO.8.2.1",
        frameworks=(_F.MDR, _F.IVDR, _F.ISO_13485, _F.CFR_820),
        risk_multipliers=_SURVEILLANCE_MULTIPLIERS,
    ),
    Question(
        id="Q9",
        prompt="How do you ensure competency of personnel performing work affecting product quality?",
        type=_SEL, weight=3, clause_ref="ISO.7.2",
        frameworks=(_F.ISO_13485, _F.CFR_820),
        options=(
            "No formal program",
            "On-the-job training only",
            "Basic training documentation",
            "Comprehensive training program with records",
        ),
    ),
    Question(
        id="Q10",
        prompt="Are nonconforming products consistently identified, controlled, and dispositioned?",
        type=_YN, weight=4, clause_ref="ISO.8.3", critical=True,
        frameworks=(_F.ISO_13485, _F.CFR_820),
    ),
    Question(
        id="Q11",
        prompt="Do you conduct periodic internal audits of all QMS processes?",
        type=_YN, weight=4, clause_ref="ISO.9.2",
        frameworks=(_F.ISO_13485, _F.CFR_820),
    ),
    Question(
        id="Q12",
        prompt="Are corrective and preventive actions (CAPAs) implemented with root cause analysis?",
        type=_YN, weight=5, clause_ref="ISO.8.5", critical=True,
        frameworks=(_F.ISO_13485, _F.CFR_820, _F.MDR),
    ),

    # === PRODUCTION & PROCESS ===
    Question(
        id="Q13",
        prompt="What percentage of your manufacturing processes are validated?",
        type=_SEL, weight=5, clause_ref="QMS.820.75", critical=True,
        frameworks=(_F.CFR_820, _F.ISO_13485),
        options=(
            "No validation program",
            "Less than 50%",
            "50-79% - Some processes",
            "80-99% - Most processes",
            "100% - All processes",
        ),
        risk_multipliers=_PROCESS_MULTIPLIERS,
    ),
    Question(
        id="Q14",
        prompt="Do you maintain documented procedures for all quality management system processes?",
        type=_YN, weight=3, clause_ref="ISO.4.2",
        frameworks=(_F.ISO_13485,),
    ),
    Question(
        id="Q15",
        prompt="Are customer complaints investigated and trended for patterns?",
        type=_YN, weight=4, clause_ref="QMS.820.198",
        frameworks=(_F.CFR_820, _F.ISO_13485, _F.MDR),
    ),
    Question(
        id="Q16",
        prompt="How do you control design changes and their implementation?",
        type=_SEL, weight=4, clause_ref="QMS.820.30",
        frameworks=(_F.CFR_820, _F.ISO_13485),
        options=(
            "No systematic control",
            "Informal change tracking",
            "Basic documentation of changes",
            "Formal change control process with approvals",
        ),
    ),
    Question(
        id="Q17",
        prompt="Are production and process controls established to ensure consistent output?",
        type=_YN, weight=4, clause_ref="ISO.7.5", critical=True,
        frameworks=(_F.ISO_13485, _F.CFR_820),
        risk_multipliers=_PROCESS_MULTIPLIERS,
    ),
    Question(
        id="Q18",
        prompt="Do you conduct sterilization validation studies for sterile products?",
        type=_SEL, weight=5, clause_ref="ISO.11135",
        frameworks=(_F.ISO_13485, _F.MDR),
        options=(
            "No validation conducted",
            "Rely on third-party validation",
            "Partial validation studies",
            "Complete validation with full documentation",
            "Not applicable - non-sterile products",
        ),
        risk_multipliers=_PROCESS_MULTIPLIERS,
    ),
    Question(
        id="Q19",
        prompt="Are measuring and monitoring equipment calibrated and controlled?",
        type=_YN, weight=3, clause_ref="ISO.7.1.5",
        frameworks=(_F.ISO_13485, _F.CFR_820),
    ),
    Question(
        id="Q20",
        prompt="How often do you review and update your quality manual?",
        type=_SEL, weight=2, clause_ref="ISO.4.2",
        frameworks=(_F.ISO_13485,),
        options=(
            "Never updated",
            "Only when required by regulations",
            "Every 3+ years",
            "Every 2 years",
            "Annually",
        ),
    ),
    Question(
        id="Q21",
        prompt="Do you maintain traceability records linking materials to finished products?",
        type=_YN, weight=4, clause_ref="ISO.7.5.3", critical=True,
        frameworks=(_F.ISO_13485, _F.CFR_820, _F.MDR, _F.IVDR),
        risk_multipliers=_RISK_FILE_MULTIPLIERS,
    ),

    # === SOFTWARE, SUPPLIERS, USABILITY ===
    Question(
        id="Q22",
        prompt="Are software lifecycle processes established for medical device software?",
        type=_SEL, weight=4, clause_ref="IEC.62304",
        frameworks=(_F.ISO_13485, _F.MDR, _F.IVDR),
        options=(
            "No formal software processes",
            "Basic software documentation",
            "Partial software processes",
            "Full IEC 62304 compliance",
            "Not applicable - no software",
        ),
        risk_multipliers=_SOFTWARE_MULTIPLIERS,
    ),
    Question(
        id="Q23",
        prompt="How do you ensure purchased materials and services meet specified requirements?",
        type=_SEL, weight=4, clause_ref="ISO.7.4",
        frameworks=(_F.ISO_13485, _F.CFR_820),
        options=(
            "No formal supplier controls",
            "Incoming inspection only",
            "Basic supplier approvals",
            "Comprehensive supplier qualification and monitoring",
        ),
    ),
    Question(
        id="Q24",
        prompt="Are advisory notices and field safety corrective actions documented and tracked?",
        type=_YN, weight=5, clause_ref="ISO.8.2.2",
        frameworks=(_F.ISO_13485, _F.MDR, _F.IVDR),
        risk_multipliers=_SURVEILLANCE_MULTIPLIERS,
    ),
    Question(
        id="Q25",
        prompt="Do you conduct usability engineering studies throughout device development?",
        type=_SEL, weight=3, clause_ref="IEC.62366",
        frameworks=(_F.MDR, _F.ISO_13485),
        options=(
            "No formal usability program",
            "Limited user testing",
            "Basic usability studies",
            "Complete usability engineering file",
        ),
        risk_multipliers=_SOFTWARE_MULTIPLIERS,
    ),

    # === CLINICAL & PERFORMANCE EVIDENCE (free text) ===
    Question(
        id="Q26",
        prompt="Describe how clinical investigation data is collected, monitored and reported for your device.",
        type=_TXT, weight=3, clause_ref="ISO.14155",
        frameworks=(_F.ISO_14155, _F.MDR),
    ),
    Question(
        id="Q27",
        prompt="Describe your performance evaluation approach for in vitro diagnostic devices.",
        type=_TXT, weight=3, clause_ref="IVDR.56",
        frameworks=(_F.IVDR,),
    ),
]


# ---------------------------------------------------------------------------
# Clause metadata
# ---------------------------------------------------------------------------

STANDARDS_MAP: Dict[str, ClauseInfo] = {
    "QMS.820.30": ClauseInfo("Design Controls", risk_weight=5, critical=True),
    "ISO.9.3": ClauseInfo("Management Review", risk_weight=3),
    "ISO.8.5": ClauseInfo("Corrective and Preventive Action", risk_weight=5, critical=True),
    "ISO.14971": ClauseInfo("Risk Management", risk_weight=5, critical=True),
    "ISO.8.2.1": ClauseInfo("Post-Market Surveillance", risk_weight=4),
    "ISO.7.2": ClauseInfo("Competence", risk_weight=3),
    "ISO.8.3": ClauseInfo("Control of Nonconforming Output", risk_weight=4, critical=True),
    "ISO.9.2": ClauseInfo("Internal Audit", risk_weight=4),
    "QMS.820.75": ClauseInfo("Process Validation", risk_weight=5, critical=True),
    "ISO.4.2": ClauseInfo("Documentation Requirements", risk_weight=3),
    "QMS.820.198": ClauseInfo("Complaint Files", risk_weight=4),
    "ISO.7.5": ClauseInfo("Production and Service Provision", risk_weight=4, critical=True),
    "ISO.11135": ClauseInfo("Sterilization of Healthcare Products", risk_weight=5),
    "ISO.7.1.5": ClauseInfo("Monitoring and Measuring Resources", risk_weight=3),
    "ISO.7.5.3": ClauseInfo("Traceability", risk_weight=4, critical=True),
    "IEC.62304": ClauseInfo("Medical Device Software", risk_weight=4),
    "ISO.7.4": ClauseInfo("Control of Externally Provided Processes, Products and Services", risk_weight=4),
    "ISO.8.2.2": ClauseInfo("Feedback", risk_weight=5),
    "IEC.62366": ClauseInfo("Usability Engineering", risk_weight=3),
    "ISO.14155": ClauseInfo("Clinical Investigation", risk_weight=4),
    "IVDR.56": ClauseInfo("Performance Evaluation", risk_weight=4),
}

UNKNOWN_CLAUSE_TITLE = "Unknown Clause"

# Clause groups consulted by the weight resolver's bonus rules
STERILIZATION_CLAUSES = frozenset({"ISO.11135"})
SOFTWARE_USABILITY_CLAUSES = frozenset({"IEC.62304", "IEC.62366"})

EVIDENCE_EXAMPLES: Dict[str, List[str]] = {
    "QMS.820.30": [
        "Design History File (DHF)",
        "Design Input Requirements",
        "Design Output Documents",
        "Design Review Records",
        "Design Verification Protocols",
        "Design Validation Reports",
    ],
    "ISO.8.5": [
        "CAPA Procedures",
        "Root Cause Analysis Reports",
        "Corrective Action Records",
        "Effectiveness Verification",
        "Trend Analysis Reports",
    ],
    "ISO.14971": [
        "Risk Management File",
        "Risk Analysis Reports",
        "Risk Control Implementation",
        "Post-Market Risk Evaluation",
        "Risk Management Plan",
    ],
    "QMS.820.75": [
        "Process Validation Protocols",
        "Installation Qualification (IQ)",
        "Operational Qualification (OQ)",
        "Performance Qualification (PQ)",
        "Process Monitoring Data",
    ],
    "ISO.7.5": [
        "Work Instructions",
        "Process Control Charts",
        "Environmental Monitoring",
        "Production Records",
        "Process Capability Studies",
    ],
    "ISO.8.3": [
        "Nonconformance Reports",
        "Disposition Records",
        "Segregation Controls",
        "Investigation Reports",
        "Corrective Actions",
    ],
    "ISO.7.5.3": [
        "Traceability Matrix",
        "Lot/Batch Records",
        "Component Traceability",
        "Distribution Records",
        "Recall Procedures",
    ],
    "ISO.11135": [
        "Sterilization Validation Report",
        "Bioburden Data",
        "Routine Monitoring Records",
    ],
    "IEC.62304": [
        "Software Development Plan",
        "Software Requirements Specification",
        "Software Verification Records",
    ],
}


# ---------------------------------------------------------------------------
# Framework labels
# ---------------------------------------------------------------------------

FRAMEWORK_LABELS: Dict[Framework, str] = {
    Framework.CFR_820: "21 CFR 820 (FDA QSR)",
    Framework.ISO_13485: "ISO 13485:2016",
    Framework.MDR: "EU MDR 2017/745",
    Framework.ISO_14155: "ISO 14155:2020",
    Framework.IVDR: "EU IVDR 2017/746",
}

FRAMEWORK_DESCRIPTIONS: Dict[Framework, str] = {
    Framework.CFR_820: "US FDA Quality System Regulation for medical device manufacturers",
    Framework.ISO_13485: "International standard for medical device quality management systems",
    Framework.MDR: "European Medical Device Regulation",
    Framework.ISO_14155: "Clinical investigation of medical devices for human subjects",
    Framework.IVDR: "European In Vitro Diagnostic Medical Device Regulation",
}


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def as_framework(value: Union[Framework, str]) -> Optional[Framework]:
    if isinstance(value, Framework):
        return value
    try:
        return Framework(value)
    except ValueError:
        return None


def get_questions() -> List[Question]:
    return list(QUESTIONS)


def get_question_by_id(question_id: str) -> Optional[Question]:
    for q in QUESTIONS:
        if q.id == question_id:
            return q
    return None


def get_filtered_questions(selected_frameworks: Iterable[Union[Framework, str]],
                           include_all: bool = False) -> List[Question]:
    """
    Questions tagged with any of the selected frameworks, in catalog order.
    `include_all` returns the full catalog. Unknown framework names are ignored.
    """
    if include_all:
        return list(QUESTIONS)
    selected = {fw for fw in (as_framework(v) for v in selected_frameworks) if fw}
    if not selected:
        return []
    return [q for q in QUESTIONS if selected.intersection(q.frameworks)]


def get_question_count_by_framework() -> Dict[Framework, int]:
    counts = {fw: 0 for fw in Framework}
    for q in QUESTIONS:
        for fw in q.frameworks:
            counts[fw] += 1
    return counts


def clause_title(clause_ref: str) -> str:
    info = STANDARDS_MAP.get(clause_ref)
    return info.title if info else UNKNOWN_CLAUSE_TITLE


def suggested_evidence(clause_ref: str) -> List[str]:
    return list(EVIDENCE_EXAMPLES.get(clause_ref, []))
