from flysch.schools.models import School, TrustTier
from flysch.schools.tiers import (
    classify,
    classify_signals,
    meets_tier_requirements,
    next_tier_recommendations,
    tier_criteria,
    tier_report,
)

PROGRAM_TYPES = ["PPL", "IR", "CPL", "CFI"]


def _school(program_count=1, trust_tier=None, **signals) -> School:
    return School.model_validate({
        "id": "s1",
        "name": "Test Flight Academy",
        "programs": [
            {"type": PROGRAM_TYPES[i], "minCost": 5000, "maxCost": 9000}
            for i in range(program_count)
        ],
        "fsp_signals": signals,
        "trust_tier": trust_tier,
    })


def test_premier_requires_every_signal():
    school = _school(3, fleetUtilization=80, passRateFirstAttempt=90, studentSatisfaction=4.5)
    assert classify(school) is TrustTier.PREMIER


def test_premier_thresholds_are_strict():
    # Utilization must be above 75, not equal to it.
    school = _school(3, fleetUtilization=75, passRateFirstAttempt=90, studentSatisfaction=4.5)
    assert classify(school) is TrustTier.VERIFIED


def test_verified_via_utilization_and_pass_rate():
    school = _school(1, fleetUtilization=71, passRateFirstAttempt=76)
    assert classify(school) is TrustTier.VERIFIED


def test_verified_via_programs_and_satisfaction():
    school = _school(3, studentSatisfaction=3.5)
    assert classify(school) is TrustTier.VERIFIED


def test_community_from_program_count():
    assert classify(_school(2)) is TrustTier.COMMUNITY


def test_community_from_utilization():
    assert classify(_school(1, fleetUtilization=61)) is TrustTier.COMMUNITY


def test_missing_signals_read_as_zero():
    # Three programs alone cannot reach Verified without a pass rate or satisfaction.
    assert classify(_school(3)) is TrustTier.COMMUNITY


def test_unverified_default():
    assert classify(_school(1)) is TrustTier.UNVERIFIED
    assert classify(None) is TrustTier.UNVERIFIED


def test_classify_signals_monotonic_in_pass_rate():
    previous = 0
    for pass_rate in range(0, 101, 5):
        rank = classify_signals(3, 80, pass_rate, 4.5).rank
        assert rank >= previous
        previous = rank


def test_meets_tier_requirements():
    premier = _school(3, fleetUtilization=80, passRateFirstAttempt=90, studentSatisfaction=4.5)
    community = _school(2)
    assert meets_tier_requirements(premier, TrustTier.VERIFIED)
    assert meets_tier_requirements(community, TrustTier.COMMUNITY)
    assert not meets_tier_requirements(community, TrustTier.VERIFIED)
    assert not meets_tier_requirements(None, TrustTier.UNVERIFIED)


def test_next_steps_for_unverified():
    steps = next_tier_recommendations(_school(1, fleetUtilization=50))
    assert "Add more training programs" in steps
    assert "Improve fleet utilization above 60%" in steps


def test_no_next_steps_for_premier():
    premier = _school(3, fleetUtilization=80, passRateFirstAttempt=90, studentSatisfaction=4.5)
    assert next_tier_recommendations(premier) == []
    assert next_tier_recommendations(None) == []


def test_stored_tier_is_display_only():
    school = _school(1, trust_tier="Premier")
    report = tier_report(school)
    assert report.stored_tier is TrustTier.PREMIER
    assert report.classified_tier is TrustTier.UNVERIFIED
    assert report.criteria == tier_criteria(TrustTier.UNVERIFIED)


def test_unknown_stored_tier_reads_as_unverified():
    assert _school(1, trust_tier="Gold").trust_tier is TrustTier.UNVERIFIED
    assert _school(1, trust_tier="").trust_tier is TrustTier.UNVERIFIED


def test_classify_signals_monotonic_in_every_signal():
    base = {"program_count": 1, "utilization": 50.0, "pass_rate": 60.0, "satisfaction": 3.0}
    steps = {
        "program_count": [1, 2, 3, 4],
        "utilization": [50.0, 61.0, 71.0, 76.0, 90.0],
        "pass_rate": [60.0, 76.0, 86.0, 95.0],
        "satisfaction": [3.0, 3.5, 4.0, 5.0],
    }
    for name, values in steps.items():
        ranks = [classify_signals(**{**base, name: v}).rank for v in values]
        assert ranks == sorted(ranks), name
