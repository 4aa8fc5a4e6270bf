from __future__ import annotations

import pytest

from cad_core.question_bank import load_bank
from cad_core.types import ExternalState, InternalState, Pillar, QuadrantLevel
from cad_core.validators import (
    InvalidPayloadError,
    check_submission,
    parse_response,
    parse_responses,
    response_for,
)


def test_short_form_is_filled_from_bank():
    bank = load_bank()
    q = bank[0]
    r = parse_response({"questionId": q.id, "quadrant": 3}, bank)
    assert r.quadrant == QuadrantLevel.Q3
    assert r.internal_state == InternalState.COMMAND
    assert r.external_state == ExternalState.NO_SYSTEM
    assert r.pillar == q.pillar
    assert r.question_id == q.id


def test_full_triple_passes_through_unchecked():
    # a mismatched triple is left for the scorer to reject
    r = parse_response(
        {"quadrant": 4, "internalState": "awareness", "externalState": "system", "pillar": "Capacity"}
    )
    assert r.quadrant == QuadrantLevel.Q4
    assert r.internal_state == InternalState.AWARENESS
    assert r.pillar == Pillar.CAPACITY
    assert r.question_id is None


@pytest.mark.parametrize(
    "payload, fragment",
    [
        ({"quadrant": 5, "questionId": 1}, "quadrant must be an integer 1-4"),
        ({"quadrant": True, "questionId": 1}, "quadrant must be an integer 1-4"),
        ({"quadrant": 2}, "needs either questionId"),
        ({"quadrant": 2, "questionId": 999}, "unknown question id 999"),
        ({"quadrant": 2, "questionId": "x"}, "questionId must be an integer"),
        (
            {"quadrant": 2, "internalState": "mastery", "externalState": "system", "pillar": "Capability"},
            "unknown internalState",
        ),
    ],
)
def test_bad_payloads(payload, fragment):
    with pytest.raises(InvalidPayloadError, match=fragment):
        parse_response(payload, load_bank())


def test_parse_responses_reports_index():
    bank = load_bank()
    with pytest.raises(InvalidPayloadError, match=r"^response 1: "):
        parse_responses([{"questionId": 1, "quadrant": 1}, {"quadrant": 0, "questionId": 2}], bank)


def test_complete_submission():
    bank = load_bank()
    responses = [response_for(q, 2) for q in bank]
    report = check_submission(responses, bank)
    assert report.complete
    assert report.describe() == "complete"


def test_incomplete_submission_lists_every_problem():
    bank = load_bank()
    responses = [response_for(q, 1) for q in bank[1:]]
    responses.append(response_for(bank[2], 4))
    responses.append(parse_response({"quadrant": 1, "internalState": "awareness",
                                     "externalState": "no-system", "pillar": "Capability"}))
    report = check_submission(responses, bank)

    assert not report.complete
    assert report.missing == [bank[0].id]
    assert report.duplicates == [bank[2].id]
    assert report.unidentified == 1
    assert "missing answers" in report.describe()
