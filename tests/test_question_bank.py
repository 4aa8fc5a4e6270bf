from __future__ import annotations

import pytest

from cad_core.question_bank import (
    PILLARS,
    QUADRANTS,
    BankError,
    get_question,
    load_bank,
    option_for,
    parse_bank,
    quadrant_for,
    quadrant_states,
)
from cad_core.types import ExternalState, InternalState, QuadrantLevel
from tests.conftest import build_raw_question, build_synthetic_bank_raw


def test_shipped_bank_has_twenty_unique_questions():
    bank = load_bank()
    assert len(bank) == 20
    assert len({q.id for q in bank}) == 20
    assert {q.pillar for q in bank} == set(PILLARS)


def test_every_option_matches_its_quadrant_states():
    for q in load_bank():
        assert sorted(int(o.quadrant) for o in q.options) == [1, 2, 3, 4]
        for o in q.options:
            assert (o.internal_state, o.external_state) == quadrant_states(o.quadrant)


def test_quadrant_state_mapping_is_a_bijection():
    assert quadrant_states(1) == (InternalState.AWARENESS, ExternalState.NO_SYSTEM)
    assert quadrant_states(4) == (InternalState.COMMAND, ExternalState.SYSTEM)
    for q in QUADRANTS:
        assert quadrant_for(*quadrant_states(q)) == q


def test_get_question_and_option_for():
    q = get_question(1)
    assert q is not None and q.id == 1
    assert option_for(q, 3).quadrant == QuadrantLevel.Q3
    assert get_question(999) is None


def test_parse_bank_rejects_mistagged_option():
    raw = build_synthetic_bank_raw()
    raw[0]["options"][3]["internal_state"] = "awareness"
    with pytest.raises(BankError, match="option Q4 is tagged awareness/system"):
        parse_bank(raw)


def test_parse_bank_rejects_missing_quadrant_and_duplicate_ids():
    broken = build_raw_question(1)
    broken["options"] = broken["options"][:3]
    raw = [broken, build_raw_question(2), build_raw_question(2)]
    with pytest.raises(BankError) as exc:
        parse_bank(raw)
    msg = str(exc.value)
    assert "has 3 options" in msg
    assert "no option for Q4" in msg
    assert "duplicate question ids: [2]" in msg


def test_parse_bank_lenient_mode_keeps_bad_items():
    raw = build_synthetic_bank_raw()
    raw[0]["options"] = raw[0]["options"][:2]
    items = parse_bank(raw, strict=False)
    assert len(items) == len(raw)
    assert len(items[0].options) == 2
