from flysch.matching.filtering import (
    diagnose_empty_pool,
    filter_candidates,
    format_money,
    offers_any_goal,
    within_budget,
)
from flysch.matching.models import MatchInputs
from flysch.schools.models import LocationFilter, ProgramType, School

SF_FILTER = LocationFilter(lat=37.7749, lng=-122.4194, radius=50)


def _school(school_id, programs, location=None, name=None) -> School:
    return School.model_validate({
        "id": school_id,
        "name": name or f"School {school_id}",
        "location": location,
        "programs": [
            {"type": ptype, "minCost": low, "maxCost": high}
            for ptype, low, high in programs
        ],
    })


def _inputs(budget, goals=("PPL",), location=None) -> MatchInputs:
    return MatchInputs(max_budget=budget, training_goals=list(goals), location=location)


def test_budget_boundary_is_inclusive():
    school = _school("a", [("PPL", 10000, 14000)])
    assert within_budget(school, 10000)
    assert not within_budget(school, 9999.99)


def test_school_without_programs_is_never_affordable():
    assert not within_budget(_school("a", []), 1_000_000)


def test_any_goal_is_enough():
    school = _school("a", [("IR", 6000, 9000)])
    assert offers_any_goal(school, [ProgramType.PPL, ProgramType.IR])
    assert not offers_any_goal(school, [ProgramType.CPL])


def test_missing_location_excluded_only_when_filtering_by_location():
    school = _school("a", [("PPL", 8000, 12000)], location=None)
    assert filter_candidates([school], _inputs(15000)) == [school]
    assert filter_candidates([school], _inputs(15000, location=SF_FILTER)) == []


def test_filter_keeps_input_order():
    schools = [
        _school("a", [("PPL", 8000, 12000)], location={"lat": 37.80, "lng": -122.27}),
        _school("b", [("PPL", 20000, 25000)], location={"lat": 37.80, "lng": -122.27}),
        _school("c", [("PPL", 9000, 11000)], location=[-81.0478, 29.1892]),
        _school("d", [("IR", 7000, 9000)], location="POINT(-122.41 37.77)"),
    ]
    result = filter_candidates(schools, _inputs(15000, goals=("PPL", "IR"), location=SF_FILTER))
    assert [s.id for s in result] == ["a", "d"]


def test_diagnose_budget_too_low():
    schools = [_school("a", [("PPL", 8000, 12000)]), _school("b", [("PPL", 9500, 13000)])]
    diagnostics = diagnose_empty_pool(schools, _inputs(5000))
    assert diagnostics.min_budget_needed == 8000
    assert diagnostics.reasons[0].startswith("Budget too low. Minimum program cost available: $8,000.")
    assert diagnostics.filter_breakdown.budget_matches == 0
    assert diagnostics.filter_breakdown.program_matches == 2


def test_diagnose_missing_programs():
    schools = [_school("a", [("PPL", 8000, 12000)])]
    diagnostics = diagnose_empty_pool(schools, _inputs(50000, goals=("ATP",)))
    assert diagnostics.missing_programs == [ProgramType.ATP]
    assert diagnostics.available_programs == [ProgramType.PPL]
    assert "Programs not available: ATP. Available programs: PPL." in diagnostics.reasons


def test_diagnose_nothing_in_radius():
    schools = [_school("a", [("PPL", 8000, 12000)], location={"lat": 29.1892, "lng": -81.0478})]
    diagnostics = diagnose_empty_pool(schools, _inputs(15000, location=SF_FILTER))
    assert diagnostics.schools_in_radius == 0
    assert any(r.startswith("No schools within 50km radius.") for r in diagnostics.reasons)


def test_diagnose_no_single_school_satisfies_all():
    schools = [
        _school("a", [("IR", 5000, 7000)]),
        _school("b", [("PPL", 20000, 25000)]),
    ]
    diagnostics = diagnose_empty_pool(schools, _inputs(10000))
    assert len(diagnostics.reasons) == 1
    assert diagnostics.reasons[0].startswith("No single school satisfies")
    assert diagnostics.filter_breakdown.budget_matches == 1
    assert diagnostics.filter_breakdown.program_matches == 1
    assert diagnostics.schools_in_radius is None


def test_format_money():
    assert format_money(15000) == "$15,000"
    assert format_money(15000.5) == "$15,000.50"


def test_location_filter_center():
    center = SF_FILTER.center
    assert center.lat == 37.7749
    assert center.lng == -122.4194
