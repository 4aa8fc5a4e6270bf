from __future__ import annotations
import json, importlib.resources as ir
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from .types import (
    ExternalState,
    InternalState,
    Pillar,
    QuadrantLevel,
    Question,
    QuestionOption,
)

PILLARS: List[Pillar] = [Pillar.CAPABILITY, Pillar.COMPETENCE, Pillar.CHARACTER, Pillar.CAPACITY]
QUADRANTS: List[QuadrantLevel] = [QuadrantLevel.Q1, QuadrantLevel.Q2, QuadrantLevel.Q3, QuadrantLevel.Q4]

_QUADRANT_STATES: Dict[QuadrantLevel, Tuple[InternalState, ExternalState]] = {
    QuadrantLevel.Q1: (InternalState.AWARENESS, ExternalState.NO_SYSTEM),
    QuadrantLevel.Q2: (InternalState.AWARENESS, ExternalState.SYSTEM),
    QuadrantLevel.Q3: (InternalState.COMMAND, ExternalState.NO_SYSTEM),
    QuadrantLevel.Q4: (InternalState.COMMAND, ExternalState.SYSTEM),
}
_STATES_QUADRANT = {v: k for k, v in _QUADRANT_STATES.items()}


class BankError(ValueError):
    """Raised when the question bank breaks the one-option-per-quadrant rule."""


def quadrant_states(quadrant: int) -> Tuple[InternalState, ExternalState]:
    return _QUADRANT_STATES[QuadrantLevel(quadrant)]


def quadrant_for(internal: InternalState, external: ExternalState) -> QuadrantLevel:
    return _STATES_QUADRANT[(InternalState(internal), ExternalState(external))]


def option_errors(question_id: Any, options: Sequence[QuestionOption]) -> List[str]:
    """Describe every way a question's options break the quadrant mapping."""
    errs: List[str] = []
    if len(options) != 4:
        errs.append(f"question {question_id} has {len(options)} options (expected 4)")
    seen = [opt.quadrant for opt in options]
    for q in QUADRANTS:
        n = seen.count(q)
        if n == 0:
            errs.append(f"question {question_id} has no option for Q{int(q)}")
        elif n > 1:
            errs.append(f"question {question_id} has {n} options for Q{int(q)}")
    for opt in options:
        if (opt.internal_state, opt.external_state) != _QUADRANT_STATES[opt.quadrant]:
            errs.append(
                f"question {question_id} option Q{int(opt.quadrant)} is tagged "
                f"{opt.internal_state.value}/{opt.external_state.value}"
            )
    return errs


def _build_question(raw: Mapping[str, Any]) -> Question:
    options = tuple(
        QuestionOption(
            quadrant=QuadrantLevel(int(o["quadrant"])),
            label=str(o["label"]),
            internal_state=InternalState(o["internal_state"]),
            external_state=ExternalState(o["external_state"]),
        )
        for o in raw.get("options", [])
    )
    return Question(
        id=int(raw["id"]),
        pillar=Pillar(raw["pillar"]),
        stage=int(raw["stage"]),
        quality=str(raw["quality"]),
        statement=str(raw["statement"]),
        options=options,
    )


def parse_bank(raw: Sequence[Mapping[str, Any]], *, strict: bool = True) -> List[Question]:
    questions = [_build_question(r) for r in raw]
    if strict:
        errs: List[str] = []
        for q in questions:
            errs.extend(option_errors(q.id, q.options))
        ids = [q.id for q in questions]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            errs.append(f"duplicate question ids: {dupes}")
        if errs:
            raise BankError("; ".join(errs))
    return questions


def load_bank_raw() -> List[Dict[str, Any]]:
    data = ir.files(__package__).joinpath("data/bank.json").read_text(encoding="utf-8")
    return json.loads(data)


@lru_cache(maxsize=1)
def _cached_bank() -> Tuple[Question, ...]:
    return tuple(parse_bank(load_bank_raw()))


def load_bank() -> List[Question]:
    return list(_cached_bank())


def get_question(question_id: int, bank: Sequence[Question] | None = None) -> Question | None:
    for q in bank if bank is not None else _cached_bank():
        if q.id == int(question_id):
            return q
    return None


def option_for(question: Question, quadrant: int) -> QuestionOption:
    level = QuadrantLevel(int(quadrant))
    for opt in question.options:
        if opt.quadrant == level:
            return opt
    raise BankError(f"question {question.id} has no option for Q{int(level)}")
