import pytest

from flysch.matching.models import MatchInputs
from flysch.matching.scoring import (
    NEUTRAL_LOCATION_SCORE,
    budget_fit,
    build_fallback_debrief,
    location_fit,
    rank_by_score,
    score_school,
)
from flysch.schools.models import LocationFilter, School


def _school(school_id="a", programs=(("PPL", 9000, 11000),), total_aircraft=5, location=None, **signals):
    return School.model_validate({
        "id": school_id,
        "name": f"School {school_id}",
        "location": location,
        "programs": [{"type": t, "minCost": lo, "maxCost": hi} for t, lo, hi in programs],
        "fleet": {"totalAircraft": total_aircraft},
        "fsp_signals": signals,
    })


def _inputs(budget=10000, goals=("PPL",), location=None) -> MatchInputs:
    return MatchInputs(max_budget=budget, training_goals=list(goals), location=location)


def test_budget_fit_peaks_at_average_midpoint():
    school = _school()
    assert budget_fit(school, 10000) == pytest.approx(1.0)
    assert budget_fit(school, 20000) == pytest.approx(0.5)
    assert budget_fit(school, 5000) == 0.0


def test_budget_fit_improves_as_budget_nears_cost():
    school = _school()
    scores = [budget_fit(school, b) for b in (30000, 20000, 15000, 12000, 10000)]
    assert scores == sorted(scores)


def test_location_neutral_without_filter_or_school_location():
    located = _school(location={"lat": 37.7749, "lng": -122.4194})
    unlocated = _school()
    sf = LocationFilter(lat=37.7749, lng=-122.4194, radius=100)
    assert location_fit(located, _inputs()) == NEUTRAL_LOCATION_SCORE
    assert location_fit(unlocated, _inputs(location=sf)) == NEUTRAL_LOCATION_SCORE
    assert location_fit(located, _inputs(location=sf)) == pytest.approx(1.0)


def test_score_combines_weighted_factors():
    # budget 1.0*.40 + programs 1.0*.30 + location .5*.15 + fleet .5*.10 + trust .3*.05
    result = score_school(_school(), _inputs())
    assert result.value == 84
    assert result.factors["trust"] == pytest.approx(0.3)


def test_score_stays_in_range():
    best = _school(
        total_aircraft=40,
        programs=(("PPL", 9000, 11000), ("IR", 9000, 11000), ("CPL", 9000, 11000)),
        fleetUtilization=90, passRateFirstAttempt=95, studentSatisfaction=5,
    )
    worst = _school(programs=(("CFI", 90000, 95000),), total_aircraft=0)
    assert 0 <= score_school(worst, _inputs(goals=("PPL",))).value <= 100
    assert score_school(best, _inputs(goals=("PPL", "IR", "CPL"))).value <= 100


def test_rank_sorts_descending_and_keeps_ties_in_input_order():
    schools = [
        _school("first"),
        _school("cheap", programs=(("PPL", 1000, 1000),)),
        _school("second"),
    ]
    ranked = rank_by_score(schools, _inputs())
    assert [r.school_id for r in ranked] == ["first", "second", "cheap"]


def test_rank_limit():
    schools = [_school(str(i)) for i in range(15)]
    assert len(rank_by_score(schools, _inputs(), limit=10)) == 10


def test_fallback_debrief_mentions_inputs_and_top_school():
    ranked = rank_by_score([_school("a"), _school("b")], _inputs(budget=15000))
    debrief = build_fallback_debrief(ranked, _inputs(budget=15000), candidate_count=2)
    assert "PPL" in debrief
    assert "$15,000" in debrief
    assert "we found 2 schools" in debrief
    assert "School a" in debrief
    assert "budget fit (" in debrief
