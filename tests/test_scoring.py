from __future__ import annotations

import itertools
import random

import pytest

from cad_core.scoring import (
    EmptyInputError,
    MalformedResponseError,
    ScoringError,
    result_from_dict,
    score,
)
from cad_core.types import (
    ExternalState,
    InternalState,
    Pillar,
    QuadrantLevel,
    Response,
    StrategicPathway,
)
from tests.conftest import build_responses


def test_even_split_resolves_to_q1_with_undefined_pathway():
    res = score(build_responses({1: 5, 2: 5, 3: 5, 4: 5}))

    assert res.dominant_quadrant == QuadrantLevel.Q1
    assert res.strategic_pathway == StrategicPathway.UNDEFINED
    assert res.total_responses == 20
    assert res.internal_leverage == pytest.approx(50.0)
    assert res.external_system == pytest.approx(50.0)
    assert res.readiness_for_q4 == pytest.approx(62.5)


def test_all_q4_is_direct_path_at_full_marks():
    res = score(build_responses({4: 20}))

    assert res.dominant_quadrant == QuadrantLevel.Q4
    assert res.strategic_pathway == StrategicPathway.DIRECT
    assert res.internal_leverage == pytest.approx(100.0)
    assert res.external_system == pytest.approx(100.0)
    assert res.readiness_for_q4 == pytest.approx(100.0)


def test_all_q1_floors_readiness_at_a_quarter():
    res = score(build_responses({1: 20}))

    assert res.dominant_quadrant == QuadrantLevel.Q1
    assert res.strategic_pathway == StrategicPathway.UNDEFINED
    assert res.internal_leverage == 0
    assert res.external_system == 0
    assert res.readiness_for_q4 == pytest.approx(25.0)


@pytest.mark.parametrize(
    "counts, dominant, pathway",
    [
        ({1: 2, 2: 8, 3: 5, 4: 5}, QuadrantLevel.Q2, StrategicPathway.SYSTEM_FIRST),
        ({1: 2, 2: 5, 3: 8, 4: 5}, QuadrantLevel.Q3, StrategicPathway.COMMAND_FIRST),
        ({1: 8, 2: 2, 3: 5, 4: 5}, QuadrantLevel.Q1, StrategicPathway.COMMAND_FIRST),
        ({1: 8, 2: 5, 3: 2, 4: 5}, QuadrantLevel.Q1, StrategicPathway.SYSTEM_FIRST),
        ({1: 2, 2: 6, 3: 1, 4: 11}, QuadrantLevel.Q4, StrategicPathway.DIRECT),
    ],
)
def test_dominant_and_pathway(counts, dominant, pathway):
    res = score(build_responses(counts))
    assert res.dominant_quadrant == dominant
    assert res.strategic_pathway == pathway


def test_q2_q3_tie_keeps_q2_dominant_but_pathway_undefined():
    res = score(build_responses({1: 3, 2: 7, 3: 7, 4: 3}))
    assert res.dominant_quadrant == QuadrantLevel.Q2
    assert res.strategic_pathway == StrategicPathway.UNDEFINED


def test_q4_tied_with_lower_quadrant_is_not_direct():
    res = score(build_responses({1: 10, 4: 10}))
    assert res.dominant_quadrant == QuadrantLevel.Q1
    assert res.strategic_pathway == StrategicPathway.UNDEFINED


def test_ties_always_go_to_lowest_quadrant():
    for a, b in itertools.combinations([1, 2, 3, 4], 2):
        res = score(build_responses({a: 6, b: 6}))
        assert int(res.dominant_quadrant) == a, (a, b)


def test_order_of_responses_does_not_matter():
    responses = build_responses({1: 3, 2: 6, 3: 6, 4: 5})
    baseline = score(responses)
    rng = random.Random(7)
    for _ in range(10):
        shuffled = list(responses)
        rng.shuffle(shuffled)
        assert score(shuffled) == baseline


def test_counts_and_pillar_sums_are_consistent():
    responses = build_responses({1: 4, 2: 3, 3: 7, 4: 6})
    res = score(responses)

    assert sum(res.quadrant_counts.values()) == res.total_responses == len(responses)
    assert sum(res.pillar_scores.values()) == sum(int(r.quadrant) for r in responses)
    for v in (res.internal_leverage, res.external_system):
        assert 0 <= v <= 100
    assert 25 <= res.readiness_for_q4 <= 100


def test_pillar_scores_are_weighted_by_quadrant():
    responses = build_responses({4: 3}, pillar=Pillar.CHARACTER) + build_responses({1: 2}, pillar=Pillar.CAPACITY)
    res = score(responses)

    assert res.pillar_scores[Pillar.CHARACTER] == 12
    assert res.pillar_scores[Pillar.CAPACITY] == 2
    assert res.pillar_scores[Pillar.CAPABILITY] == 0
    assert res.pillar_scores[Pillar.COMPETENCE] == 0


def test_percentages_are_not_rounded():
    res = score(build_responses({1: 2, 4: 1}))
    assert res.internal_leverage == pytest.approx(100 / 3)
    assert res.readiness_for_q4 == pytest.approx(6 / 12 * 100)


def test_partial_and_single_response_are_scored():
    res = score(build_responses({3: 1}))
    assert res.total_responses == 1
    assert res.dominant_quadrant == QuadrantLevel.Q3
    assert res.strategic_pathway == StrategicPathway.COMMAND_FIRST
    assert res.readiness_for_q4 == pytest.approx(75.0)


def test_scoring_is_idempotent():
    responses = build_responses({1: 1, 2: 2, 3: 3, 4: 4})
    assert score(responses) == score(list(responses))


def test_empty_input_is_rejected():
    with pytest.raises(EmptyInputError):
        score([])


def test_mismatched_states_reject_the_whole_batch():
    good = build_responses({2: 3})
    bad = Response(
        quadrant=QuadrantLevel.Q4,
        internal_state=InternalState.AWARENESS,
        external_state=ExternalState.SYSTEM,
        pillar=Pillar.CAPACITY,
    )
    with pytest.raises(MalformedResponseError) as exc:
        score(good + [bad])
    assert exc.value.index == 3
    assert isinstance(exc.value, ScoringError)


def test_result_round_trips_through_stored_form():
    res = score(build_responses({1: 3, 2: 6, 3: 2, 4: 9}))
    assert result_from_dict(res.to_dict()) == res


@pytest.mark.parametrize(
    "bad",
    [
        Response(QuadrantLevel.Q4, "Command", ExternalState.SYSTEM, Pillar.CAPACITY),
        Response(5, InternalState.COMMAND, ExternalState.SYSTEM, Pillar.CAPACITY),
        Response(QuadrantLevel.Q4, InternalState.COMMAND, ExternalState.SYSTEM, "Courage"),
    ],
    ids=["unknown-state", "quadrant-out-of-range", "unknown-pillar"],
)
def test_bad_field_values_reject_the_whole_batch(bad):
    with pytest.raises(MalformedResponseError) as exc:
        score(build_responses({1: 2}) + [bad])
    assert exc.value.index == 2
    assert str(exc.value).startswith("response 2 is malformed")
