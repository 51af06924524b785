"""
Readiness data model - questions, answers, classifications and score results.

Single source of truth for the shapes exchanged between the catalog, the
scoring engine, the risk assessor, the team aggregator and the exporters.
Every result type here is created fresh per scoring call and never mutated.
"""

from dataclasses import dataclass, field
from enum import Enum
from functools import total_ordering
from typing import Dict, List, Mapping, Optional, Tuple, Union


ENGINE_VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class QuestionType(Enum):
    """How a question is answered and therefore how it is scored."""
    YES_NO = "yesno"
    SELECT = "select"
    TEXT = "text"


class Framework(Enum):
    """Regulatory frameworks questions can be tagged with."""
    CFR_820 = "CFR_820"
    ISO_13485 = "ISO_13485"
    MDR = "MDR"
    ISO_14155 = "ISO_14155"
    IVDR = "IVDR"


@total_ordering
class RiskLevel(Enum):
    """Ordinal device risk level: Low < Medium < High < Very High."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    VERY_HIGH = "Very High"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]

    def __lt__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank < other.rank


_RISK_RANK = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.VERY_HIGH: 3,
}


class Status(Enum):
    RED = "red"
    AMBER = "amber"
    GREEN = "green"


class OverallRisk(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Maturity(Enum):
    BASIC = "basic"
    DEVELOPING = "developing"
    ADVANCED = "advanced"
    OPTIMIZED = "optimized"


class Likelihood(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# ---------------------------------------------------------------------------
# Catalog entries
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ClauseInfo:
    """Metadata for a clause reference (title drives report grouping)."""
    title: str
    risk_weight: int = 3
    critical: bool = False


@dataclass(frozen=True)
class Question:
    """
    A single catalog question. Immutable after catalog load.

    `risk_multipliers` maps a device class ("Class I", "Class IIb", ...) to the
    factor applied to `weight` when that class is the resolved device class.
    """
    id: str
    prompt: str
    type: QuestionType
    weight: float
    clause_ref: str
    frameworks: Tuple[Framework, ...]
    critical: bool = False
    options: Tuple[str, ...] = ()
    risk_multipliers: Mapping[str, float] = field(default_factory=dict, hash=False)
    help_text: str = ""

    def __post_init__(self):
        if not self.frameworks:
            raise ValueError(f"Question {self.id} has no framework tags")
        if self.weight <= 0:
            raise ValueError(f"Question {self.id} must have a positive weight")
        if self.type is QuestionType.SELECT and not self.options:
            raise ValueError(f"Select question {self.id} has no options")


# ---------------------------------------------------------------------------
# Answers (tagged by question type)
# ---------------------------------------------------------------------------

RawAnswer = Union[bool, str, int, float]


@dataclass(frozen=True)
class YesNoAnswer:
    value: bool


@dataclass(frozen=True)
class SelectAnswer:
    index: int
    option: str


@dataclass(frozen=True)
class TextAnswer:
    text: str


Answer = Union[YesNoAnswer, SelectAnswer, TextAnswer]


@dataclass(frozen=True)
class AssessmentResponse:
    """One submitted answer. Raw value is interpreted against the question type."""
    question_id: str
    answer: RawAnswer
    timestamp: Optional[str] = None


# ---------------------------------------------------------------------------
# Device risk classification
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DeviceAttributes:
    """Raw device flags collected from the user."""
    fda_class: Optional[str] = None
    eu_class: Optional[str] = None
    is_sterile: bool = False
    is_measuring: bool = False
    has_active_components: bool = False
    is_drug_device: bool = False
    device_category: Optional[str] = None


@dataclass(frozen=True)
class RiskClassification:
    """Derived classification; the device attributes travel with the level."""
    level: RiskLevel
    justification: str = ""
    fda_class: Optional[str] = None
    eu_class: Optional[str] = None
    is_sterile: bool = False
    is_measuring: bool = False
    has_active_components: bool = False
    is_drug_device: bool = False
    device_category: Optional[str] = None


# ---------------------------------------------------------------------------
# Score results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Gap:
    question_id: str
    prompt: str
    clause_ref: str
    clause_title: str
    deficit: float
    suggested_evidence: Tuple[str, ...] = ()
    critical: bool = False


@dataclass
class WeightingFactor:
    """Per-category subtotal. Built up during breakdown, then frozen into the result."""
    category: str
    weight: float = 0.0
    max_score: float = 0.0
    actual_score: float = 0.0
    performance: float = 0.0
    clause_refs: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class WeightedBreakdown:
    total_possible_weight: float
    actual_weighted_score: float
    weighting_factors: Tuple[WeightingFactor, ...] = ()
    critical_impact: int = 0


@dataclass(frozen=True)
class RiskFactor:
    type: str
    description: str
    impact: float
    likelihood: Likelihood
    clause_refs: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RiskAssessment:
    overall_risk: OverallRisk
    compliance_maturity: Maturity
    risk_factors: Tuple[RiskFactor, ...] = ()
    mitigation_priority: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FrameworkScore:
    framework: Framework
    score: int
    max_possible_score: float
    critical_failures: int
    gaps: int
    performance: int
    recommendation: str


@dataclass(frozen=True)
class ScoreResult:
    """Output of one scoring invocation."""
    score: int
    raw_score: int
    status: Status
    critical_hit: bool
    critical_failures: Tuple[str, ...]
    gaps: Tuple[Gap, ...]
    top_gaps: Tuple[Gap, ...]
    weighted_breakdown: WeightedBreakdown
    risk_assessment: RiskAssessment
    framework_scores: Dict[str, FrameworkScore] = field(default_factory=dict)
    answered_count: int = 0
    version: str = ENGINE_VERSION

