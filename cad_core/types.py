from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Tuple


class Pillar(str, Enum):
    CAPABILITY = "Capability"
    COMPETENCE = "Competence"
    CHARACTER = "Character"
    CAPACITY = "Capacity"


class InternalState(str, Enum):
    AWARENESS = "awareness"
    COMMAND = "command"


class ExternalState(str, Enum):
    NO_SYSTEM = "no-system"
    SYSTEM = "system"


class QuadrantLevel(IntEnum):
    Q1 = 1
    Q2 = 2
    Q3 = 3
    Q4 = 4


class StrategicPathway(str, Enum):
    SYSTEM_FIRST = "Route A: System-First"
    COMMAND_FIRST = "Route B: Command-First"
    DIRECT = "Direct Path"
    UNDEFINED = "Undefined"


@dataclass(frozen=True)
class QuestionOption:
    quadrant: QuadrantLevel; label: str
    internal_state: InternalState
    external_state: ExternalState


@dataclass(frozen=True)
class Question:
    id: int; pillar: Pillar; stage: int
    quality: str; statement: str
    options: Tuple[QuestionOption, ...]


@dataclass(frozen=True)
class Response:
    quadrant: QuadrantLevel
    internal_state: InternalState
    external_state: ExternalState
    pillar: Pillar
    question_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionId": self.question_id,
            "quadrant": int(self.quadrant),
            "internalState": self.internal_state.value,
            "externalState": self.external_state.value,
            "pillar": self.pillar.value,
        }


@dataclass(frozen=True)
class CADAssessmentResult:
    dominant_quadrant: QuadrantLevel
    quadrant_counts: Dict[QuadrantLevel, int]
    pillar_scores: Dict[Pillar, int]
    strategic_pathway: StrategicPathway
    internal_leverage: float
    external_system: float
    total_responses: int
    readiness_for_q4: float

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe camelCase view, the shape stored as ``cad_results``."""
        return {
            "dominantQuadrant": int(self.dominant_quadrant),
            "quadrantCounts": {str(int(q)): n for q, n in self.quadrant_counts.items()},
            "pillarScores": {p.value: s for p, s in self.pillar_scores.items()},
            "strategicPathway": self.strategic_pathway.value,
            "internalLeverage": self.internal_leverage,
            "externalSystem": self.external_system,
            "totalResponses": self.total_responses,
            "readinessForQ4": self.readiness_for_q4,
        }


@dataclass(frozen=True)
class QuadrantProfile:
    quadrant: QuadrantLevel; name: str; subtitle: str


QUADRANT_PROFILES: Dict[QuadrantLevel, QuadrantProfile] = {
    QuadrantLevel.Q1: QuadrantProfile(QuadrantLevel.Q1, "The New Traveler", "Awareness + No System"),
    QuadrantLevel.Q2: QuadrantProfile(QuadrantLevel.Q2, "The Steady Support", "Awareness + System"),
    QuadrantLevel.Q3: QuadrantProfile(QuadrantLevel.Q3, "The Independent Starter", "Command + No System"),
    QuadrantLevel.Q4: QuadrantProfile(QuadrantLevel.Q4, "Systemic Leverage Peak", "Command + System"),
}


@dataclass
class PersonalizedInsights:
    summary: str
    strengths: List[str] = field(default_factory=list)
    areas_for_growth: List[str] = field(default_factory=list)
    action_steps: List[str] = field(default_factory=list)
    motivational_message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "strengths": list(self.strengths),
            "areasForGrowth": list(self.areas_for_growth),
            "actionSteps": list(self.action_steps),
            "motivationalMessage": self.motivational_message,
        }


@dataclass
class DashboardInsight:
    recommendation: str; action_step: str; reflection: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "recommendation": self.recommendation,
            "actionStep": self.action_step,
            "reflection": self.reflection,
        }
