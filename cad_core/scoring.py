from __future__ import annotations
import logging
from typing import Dict, Sequence

from .question_bank import PILLARS, QUADRANTS, quadrant_for
from .types import (
    CADAssessmentResult,
    ExternalState,
    InternalState,
    Pillar,
    QuadrantLevel,
    Response,
    StrategicPathway,
)

log = logging.getLogger(__name__)


class ScoringError(ValueError):
    pass


class EmptyInputError(ScoringError):
    def __init__(self) -> None:
        super().__init__("cannot score an empty response list")


def _shown(value: object) -> object:
    return getattr(value, "value", value)


class MalformedResponseError(ScoringError):
    def __init__(self, index: int, response: Response) -> None:
        self.index = index
        self.response = response
        super().__init__(
            f"response {index} is malformed: quadrant {_shown(response.quadrant)!r}, "
            f"states {_shown(response.internal_state)}/{_shown(response.external_state)}, "
            f"pillar {_shown(response.pillar)}"
        )


def check_responses(responses: Sequence[Response]) -> None:
    """Reject the whole batch if it is empty or any response has a bad field or mismatched states."""
    if not responses:
        raise EmptyInputError()
    for idx, r in enumerate(responses):
        try:
            declared = QuadrantLevel(r.quadrant)
            Pillar(r.pillar)
            tagged = quadrant_for(InternalState(r.internal_state), ExternalState(r.external_state))
        except ValueError:
            raise MalformedResponseError(idx, r) from None
        if tagged != declared:
            raise MalformedResponseError(idx, r)


def _dominant(counts: Dict[QuadrantLevel, int]) -> QuadrantLevel:
    # stable sort over Q1..Q4, so ties go to the lowest quadrant
    return sorted(QUADRANTS, key=lambda q: counts[q], reverse=True)[0]


def _pathway(dominant: QuadrantLevel, counts: Dict[QuadrantLevel, int]) -> StrategicPathway:
    if dominant == QuadrantLevel.Q4:
        return StrategicPathway.DIRECT
    if counts[QuadrantLevel.Q2] > counts[QuadrantLevel.Q3]:
        return StrategicPathway.SYSTEM_FIRST
    if counts[QuadrantLevel.Q3] > counts[QuadrantLevel.Q2]:
        return StrategicPathway.COMMAND_FIRST
    return StrategicPathway.UNDEFINED


def score(responses: Sequence[Response]) -> CADAssessmentResult:
    """
    Aggregate one assessment's responses into a CADAssessmentResult.

    Pillar scores are weighted sums (each response adds its quadrant number),
    the percentages are unrounded, and the dominant quadrant resolves ties to
    the lower quadrant. The pathway compares Q2 and Q3 counts directly and
    does not depend on how the dominant tie was broken.

    Partial or duplicate submissions are scored as given. Raises
    EmptyInputError for no responses and MalformedResponseError when a
    response's internal/external states do not match its quadrant.
    """
    check_responses(responses)

    quadrant_counts: Dict[QuadrantLevel, int] = {q: 0 for q in QUADRANTS}
    pillar_scores: Dict[Pillar, int] = {p: 0 for p in PILLARS}
    command_count = 0
    system_count = 0

    for r in responses:
        q = QuadrantLevel(r.quadrant)
        quadrant_counts[q] += 1
        pillar_scores[Pillar(r.pillar)] += int(q)
        if r.internal_state == InternalState.COMMAND:
            command_count += 1
        if r.external_state == ExternalState.SYSTEM:
            system_count += 1

    total = len(responses)
    dominant = _dominant(quadrant_counts)
    total_points = sum(int(q) * n for q, n in quadrant_counts.items())
    max_points = total * 4

    result = CADAssessmentResult(
        dominant_quadrant=dominant,
        quadrant_counts=quadrant_counts,
        pillar_scores=pillar_scores,
        strategic_pathway=_pathway(dominant, quadrant_counts),
        internal_leverage=command_count / total * 100,
        external_system=system_count / total * 100,
        total_responses=total,
        readiness_for_q4=total_points / max_points * 100,
    )
    log.debug(
        "scored %d responses: dominant=Q%d pathway=%s readiness=%.1f",
        total, int(dominant), result.strategic_pathway.value, result.readiness_for_q4,
    )
    return result


def result_from_dict(data: Dict[str, object]) -> CADAssessmentResult:
    """Rebuild a result from its stored camelCase form (see CADAssessmentResult.to_dict)."""
    counts = data.get("quadrantCounts") or {}
    pillars = data.get("pillarScores") or {}
    return CADAssessmentResult(
        dominant_quadrant=QuadrantLevel(int(data["dominantQuadrant"])),  # type: ignore[arg-type]
        quadrant_counts={q: int(counts.get(str(int(q)), 0)) for q in QUADRANTS},  # type: ignore[union-attr]
        pillar_scores={p: int(pillars.get(p.value, 0)) for p in PILLARS},  # type: ignore[union-attr]
        strategic_pathway=StrategicPathway(data["strategicPathway"]),
        internal_leverage=float(data.get("internalLeverage", 0.0)),  # type: ignore[arg-type]
        external_system=float(data.get("externalSystem", 0.0)),  # type: ignore[arg-type]
        total_responses=int(data.get("totalResponses", 0)),  # type: ignore[arg-type]
        readiness_for_q4=float(data.get("readinessForQ4", 0.0)),  # type: ignore[arg-type]
    )
