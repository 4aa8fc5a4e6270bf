from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence

from .question_bank import get_question, option_for, quadrant_states
from .types import ExternalState, InternalState, Pillar, QuadrantLevel, Question, Response


class InvalidPayloadError(ValueError):
    """A response payload that cannot be turned into a core Response."""


def _pick(payload: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in payload and payload[k] is not None:
            return payload[k]
    return None


def _enum(cls, raw: Any, what: str):
    try:
        return cls(raw)
    except ValueError:
        raise InvalidPayloadError(f"unknown {what}: {raw!r}") from None


def _quadrant(raw: Any) -> QuadrantLevel:
    if isinstance(raw, bool):
        raise InvalidPayloadError(f"quadrant must be an integer 1-4, got {raw!r}")
    try:
        return QuadrantLevel(int(raw))
    except (TypeError, ValueError):
        raise InvalidPayloadError(f"quadrant must be an integer 1-4, got {raw!r}") from None


def parse_response(payload: Mapping[str, Any], bank: Optional[Sequence[Question]] = None) -> Response:
    """
    Convert one loosely typed answer into a Response.

    Accepts the full triple (quadrant, internalState, externalState, pillar)
    or the short form (questionId, quadrant), where the states and pillar are
    filled in from the bank. A mismatched triple is passed through untouched
    so the scoring engine can reject it.
    """
    if not isinstance(payload, Mapping):
        raise InvalidPayloadError(f"response must be an object, got {type(payload).__name__}")
    quadrant = _quadrant(_pick(payload, "quadrant"))

    qid_raw = _pick(payload, "questionId", "question_id")
    question_id: Optional[int] = None
    if qid_raw is not None:
        try:
            question_id = int(qid_raw)
        except (TypeError, ValueError):
            raise InvalidPayloadError(f"questionId must be an integer, got {qid_raw!r}") from None

    internal_raw = _pick(payload, "internalState", "internal_state")
    external_raw = _pick(payload, "externalState", "external_state")
    pillar_raw = _pick(payload, "pillar")

    if internal_raw is None or external_raw is None or pillar_raw is None:
        if question_id is None:
            raise InvalidPayloadError("response needs either questionId or the full state triple and pillar")
        question = get_question(question_id, bank)
        if question is None:
            raise InvalidPayloadError(f"unknown question id {question_id}")
        option = option_for(question, quadrant)
        internal = _enum(InternalState, internal_raw, "internalState") if internal_raw is not None else option.internal_state
        external = _enum(ExternalState, external_raw, "externalState") if external_raw is not None else option.external_state
        pillar = _enum(Pillar, pillar_raw, "pillar") if pillar_raw is not None else question.pillar
    else:
        internal = _enum(InternalState, internal_raw, "internalState")
        external = _enum(ExternalState, external_raw, "externalState")
        pillar = _enum(Pillar, pillar_raw, "pillar")

    return Response(
        quadrant=quadrant,
        internal_state=internal,
        external_state=external,
        pillar=pillar,
        question_id=question_id,
    )


def parse_responses(payloads: Sequence[Mapping[str, Any]], bank: Optional[Sequence[Question]] = None) -> List[Response]:
    out: List[Response] = []
    for idx, p in enumerate(payloads):
        try:
            out.append(parse_response(p, bank))
        except InvalidPayloadError as e:
            raise InvalidPayloadError(f"response {idx}: {e}") from None
    return out


def response_for(question: Question, quadrant: int) -> Response:
    """The Response a UI records when the user picks ``quadrant`` on ``question``."""
    internal, external = quadrant_states(quadrant)
    return Response(
        quadrant=QuadrantLevel(int(quadrant)),
        internal_state=internal,
        external_state=external,
        pillar=question.pillar,
        question_id=question.id,
    )


@dataclass
class SubmissionReport:
    missing: List[int] = field(default_factory=list)
    duplicates: List[int] = field(default_factory=list)
    unknown: List[int] = field(default_factory=list)
    unidentified: int = 0
    pillar_mismatch: List[int] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not (self.missing or self.duplicates or self.unknown or self.unidentified or self.pillar_mismatch)

    def describe(self) -> str:
        parts = []
        if self.missing: parts.append(f"missing answers for questions {self.missing}")
        if self.duplicates: parts.append(f"duplicate answers for questions {self.duplicates}")
        if self.unknown: parts.append(f"unknown question ids {self.unknown}")
        if self.unidentified: parts.append(f"{self.unidentified} responses without questionId")
        if self.pillar_mismatch: parts.append(f"pillar does not match question for {self.pillar_mismatch}")
        return "; ".join(parts) or "complete"


def check_submission(responses: Sequence[Response], bank: Sequence[Question]) -> SubmissionReport:
    """Report whether every bank question was answered exactly once."""
    by_id = {q.id: q for q in bank}
    counts = Counter(r.question_id for r in responses if r.question_id is not None)
    report = SubmissionReport(
        missing=sorted(qid for qid in by_id if counts.get(qid, 0) == 0),
        duplicates=sorted(qid for qid, n in counts.items() if n > 1 and qid in by_id),
        unknown=sorted(qid for qid in counts if qid not in by_id),
        unidentified=sum(1 for r in responses if r.question_id is None),
    )
    for r in responses:
        q = by_id.get(r.question_id) if r.question_id is not None else None
        if q is not None and q.pillar != r.pillar and q.id not in report.pillar_mismatch:
            report.pillar_mismatch.append(q.id)
    return report
