"""
Preparation Checklists - audit preparation tasks and multi-week guides.

Checklist items are tagged by device category, device class and framework;
`get_filtered_checklists` selects the items relevant to one device and
`get_preparation_guide` returns the week-by-week plan where one exists.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple, Union

from backend.readiness.catalog import as_framework
from backend.readiness.context import Framework


class ChecklistPriority(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


DEVICE_CATEGORIES = ("surgical", "diagnostic", "therapeutic")

_ALL_CLASSES = ("Class I", "Class II", "Class III", "Class IIa", "Class IIb")
_NOT_CLASS_I = ("Class II", "Class III", "Class IIa", "Class IIb")
_F = Framework
_CORE = (_F.CFR_820, _F.ISO_13485, _F.MDR)


@dataclass(frozen=True)
class ChecklistItem:
    id: str
    title: str
    description: str
    priority: ChecklistPriority
    category: str
    frameworks: Tuple[Framework, ...]
    device_categories: Tuple[str, ...]
    risk_classes: Tuple[str, ...]
    estimated_hours: int
    evidence_types: Tuple[str, ...] = ()
    common_pitfalls: Tuple[str, ...] = ()
    tips: Tuple[str, ...] = ()
    dependencies: Tuple[str, ...] = ()


@dataclass(frozen=True)
class GuideSection:
    id: str
    title: str
    description: str
    estimated_hours: int
    order: int
    items: Tuple[ChecklistItem, ...]


@dataclass(frozen=True)
class Milestone:
    id: str
    title: str
    description: str
    days_from_start: int
    deliverables: Tuple[str, ...]
    critical_path: bool


@dataclass(frozen=True)
class PreparationGuide:
    id: str
    title: str
    description: str
    category: str
    risk_class: str
    frameworks: Tuple[Framework, ...]
    total_estimated_hours: int
    sections: Tuple[GuideSection, ...]
    milestones: Tuple[Milestone, ...]


# ---------------------------------------------------------------------------
# Checklist items
# ---------------------------------------------------------------------------

CHECKLIST_ITEMS: List[ChecklistItem] = [
    ChecklistItem(
        id="DC001",
        title="Design History File (DHF) Completeness",
        description="DHF holds design inputs, outputs, reviews, verification, validation "
                    "and change control records",
        priority=ChecklistPriority.CRITICAL,
        category="Design Controls",
        frameworks=_CORE,
        device_categories=DEVICE_CATEGORIES,
        risk_classes=_ALL_CLASSES,
        estimated_hours=8,
        evidence_types=("Design History File", "Design Controls Procedures",
                        "Design Review Records"),
        common_pitfalls=("Missing traceability matrices", "Incomplete design reviews",
                         "Inadequate change control documentation"),
        tips=("Use a design control checklist for each phase",
              "Keep the DHF under version control"),
    ),
    ChecklistItem(
        id="DC002",
        title="Risk Management File (ISO 14971)",
        description="Hazard identification, risk estimation, risk control and residual "
                    "risk evaluation are complete",
        priority=ChecklistPriority.CRITICAL,
        category="Risk Management",
        frameworks=_CORE,
        device_categories=DEVICE_CATEGORIES,
        risk_classes=_ALL_CLASSES,
        estimated_hours=12,
        evidence_types=("Risk Management File", "Risk Analysis Reports",
                        "Risk Control Implementation Records"),
        common_pitfalls=("Incomplete hazard identification",
                         "Missing clinical risk assessment",
                         "Post-market data not fed back into the risk file"),
        tips=("Use structured hazard analysis (FMEA, FTA)",
              "Align the clinical evaluation with the risk assessment"),
    ),
    ChecklistItem(
        id="MFG001",
        title="Manufacturing Process Validation",
        description="All manufacturing processes documented and validated, with "
                    "statistical process control where applicable",
        priority=ChecklistPriority.HIGH,
        category="Manufacturing",
        frameworks=_CORE,
        device_categories=DEVICE_CATEGORIES,
        risk_classes=_NOT_CLASS_I,
        estimated_hours=16,
        evidence_types=("Process Validation Protocols", "Statistical Process Control Records",
                        "Equipment Qualification Records"),
        common_pitfalls=("Insufficient process parameters", "Missing statistical justification",
                         "Inadequate equipment qualification"),
        tips=("Map the process before validating it",
              "Include worst-case conditions in validation runs"),
        dependencies=("DC001",),
    ),
    ChecklistItem(
        id="SUR001",
        title="Sterilization Validation",
        description="Bioburden determination, sterility assurance level and packaging "
                    "validation are complete",
        priority=ChecklistPriority.CRITICAL,
        category="Sterilization",
        frameworks=_CORE,
        device_categories=("surgical",),
        risk_classes=_NOT_CLASS_I,
        estimated_hours=20,
        evidence_types=("Sterilization Validation Reports", "Bioburden Studies",
                        "Package Integrity Testing"),
        common_pitfalls=("Inadequate bioburden characterization",
                         "Missing worst-case load configurations",
                         "Insufficient packaging validation"),
        tips=("Follow ISO 11135 / ISO 11137", "Include material compatibility studies"),
    ),
    ChecklistItem(
        id="DIAG001",
        title="Analytical Performance Validation",
        description="Accuracy, precision, analytical sensitivity and specificity, and "
                    "measurement range are demonstrated",
        priority=ChecklistPriority.CRITICAL,
        category="Performance Validation",
        frameworks=_CORE,
        device_categories=("diagnostic",),
        risk_classes=_NOT_CLASS_I,
        estimated_hours=24,
        evidence_types=("Analytical Performance Studies", "Method Validation Reports",
                        "Reference Method Comparisons"),
        common_pitfalls=("Insufficient sample sizes", "Missing interference studies",
                         "Inadequate reference standards"),
        tips=("Follow CLSI guidelines for study design",
              "Include clinically relevant interferents"),
    ),
    ChecklistItem(
        id="THER001",
        title="Clinical Evidence Package",
        description="Clinical evaluation report with clinical data demonstrating safety "
                    "and performance",
        priority=ChecklistPriority.CRITICAL,
        category="Clinical Evidence",
        frameworks=_CORE,
        device_categories=("therapeutic",),
        risk_classes=_NOT_CLASS_I,
        estimated_hours=32,
        evidence_types=("Clinical Evaluation Report", "Clinical Investigation Reports",
                        "Post-Market Clinical Follow-up"),
        common_pitfalls=("Insufficient clinical data", "Weak equivalence demonstration",
                         "Inadequate benefit-risk analysis"),
        tips=("Align with MEDDEV 2.7/1", "Include the post-market surveillance plan"),
    ),
    ChecklistItem(
        id="SW001",
        title="Software Lifecycle Documentation (IEC 62304)",
        description="Planning, design, implementation, integration and testing records "
                    "for device software",
        priority=ChecklistPriority.HIGH,
        category="Software",
        frameworks=(_F.ISO_13485, _F.MDR),
        device_categories=("diagnostic", "therapeutic"),
        risk_classes=_NOT_CLASS_I,
        estimated_hours=20,
        evidence_types=("Software Requirements Specification",
                        "Software Architecture Document", "Software Testing Records"),
        common_pitfalls=("Incomplete requirements traceability",
                         "Missing software risk analysis", "Inadequate cybersecurity measures"),
        tips=("Classify the software safety class early",
              "Tie software risk analysis into device risk management"),
    ),
    ChecklistItem(
        id="QS001",
        title="Management Responsibility Documentation",
        description="Quality policy, organizational structure and management "
                    "representative are documented",
        priority=ChecklistPriority.HIGH,
        category="Quality System",
        frameworks=_CORE,
        device_categories=DEVICE_CATEGORIES,
        risk_classes=_ALL_CLASSES,
        estimated_hours=4,
        evidence_types=("Quality Manual", "Management Review Records", "Organizational Charts"),
        common_pitfalls=("Generic quality policy", "Missing management review records",
                         "Unclear roles and responsibilities"),
        tips=("Tailor the quality policy to device-specific risks",
              "Schedule management reviews in advance"),
    ),
    ChecklistItem(
        id="QS002",
        title="Corrective and Preventive Action (CAPA) System",
        description="Quality problems are identified, investigated and corrected, and "
                    "recurrence is prevented",
        priority=ChecklistPriority.HIGH,
        category="Quality System",
        frameworks=_CORE,
        device_categories=DEVICE_CATEGORIES,
        risk_classes=_ALL_CLASSES,
        estimated_hours=6,
        evidence_types=("CAPA Procedures", "Investigation Records", "Trend Analysis Reports"),
        common_pitfalls=("Reactive rather than proactive approach",
                         "Missing root cause analysis",
                         "Inadequate effectiveness verification"),
        tips=("Trend quality data", "Link CAPA inputs to statistical process control"),
    ),
]


def _items(*ids: str) -> Tuple[ChecklistItem, ...]:
    return tuple(item for item in CHECKLIST_ITEMS if item.id in ids)


# ---------------------------------------------------------------------------
# Preparation guides
# ---------------------------------------------------------------------------

PREPARATION_GUIDES: List[PreparationGuide] = [
    PreparationGuide(
        id="SURGICAL_CLASS_III",
        title="Class III Surgical Device Audit Preparation",
        description="21-day preparation guide for high-risk surgical devices",
        category="surgical",
        risk_class="Class III",
        frameworks=_CORE,
        total_estimated_hours=120,
        sections=(
            GuideSection("WEEK1_FOUNDATION", "Week 1: Foundation & Documentation Review",
                         "Set up the readiness team and review core documentation",
                         40, 1, _items("DC001", "DC002", "QS001", "QS002")),
            GuideSection("WEEK2_TECHNICAL", "Week 2: Technical Validation & Manufacturing",
                         "Manufacturing processes, sterilization and technical documentation",
                         50, 2, _items("MFG001", "SUR001", "SW001")),
            GuideSection("WEEK3_REHEARSAL", "Week 3: Mock Audit & Final Preparation",
                         "Internal mock audit and final documentation review",
                         30, 3, ()),
        ),
        milestones=(
            Milestone("M1", "Documentation Complete",
                      "Required documentation reviewed and gaps identified", 7,
                      ("Gap Assessment Report", "Documentation Matrix"), True),
            Milestone("M2", "Technical Validation Verified",
                      "Process and sterilization validation confirmed", 14,
                      ("Process Validation Summary", "Sterilization Validation Report"), True),
            Milestone("M3", "Audit Rehearsal Complete",
                      "Mock audit held and action items resolved", 19,
                      ("Mock Audit Report", "Response Scripts"), False),
        ),
    ),
    PreparationGuide(
        id="DIAGNOSTIC_CLASS_II",
        title="Class II Diagnostic Device Audit Preparation",
        description="21-day preparation guide for moderate-risk diagnostic devices",
        category="diagnostic",
        risk_class="Class II",
        frameworks=_CORE,
        total_estimated_hours=90,
        sections=(
            GuideSection("DIAG_WEEK1", "Week 1: Quality System & Design Controls",
                         "Quality system documentation and design control records",
                         30, 1, _items("DC001", "DC002", "QS001")),
            GuideSection("DIAG_WEEK2", "Week 2: Performance Validation & Manufacturing",
                         "Analytical performance studies and manufacturing processes",
                         40, 2, _items("DIAG001", "MFG001", "SW001")),
            GuideSection("DIAG_WEEK3", "Week 3: Final Review & Preparation",
                         "Final review and audit response preparation",
                         20, 3, _items("QS002")),
        ),
        milestones=(
            Milestone("DM1", "Design Controls Verified",
                      "DHF completeness and risk management file reviewed", 5,
                      ("Design Control Checklist", "Risk Management Summary"), True),
            Milestone("DM2", "Performance Data Validated",
                      "Analytical performance claims substantiated", 12,
                      ("Performance Validation Summary", "Claims Matrix"), True),
        ),
    ),
]


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def get_filtered_checklists(device_category: str, risk_class: str,
                            frameworks: Iterable[Union[Framework, str]]) -> List[ChecklistItem]:
    """Items for the device category and class tagged with any selected framework."""
    selected = {fw for fw in (as_framework(v) for v in frameworks) if fw}
    return [
        item for item in CHECKLIST_ITEMS
        if device_category in item.device_categories
        and risk_class in item.risk_classes
        and selected.intersection(item.frameworks)
    ]


def get_preparation_guide(device_category: str, risk_class: str) -> Optional[PreparationGuide]:
    for guide in PREPARATION_GUIDES:
        if guide.category == device_category and guide.risk_class == risk_class:
            return guide
    return None


def get_checklists_by_priority(items: Iterable[ChecklistItem]) -> Dict[str, List[ChecklistItem]]:
    """Group items by priority; every priority key is present, in catalog order."""
    grouped: Dict[str, List[ChecklistItem]] = {p.value: [] for p in ChecklistPriority}
    for item in items:
        grouped[item.priority.value].append(item)
    return grouped
