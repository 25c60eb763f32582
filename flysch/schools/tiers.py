from __future__ import annotations

from .models import School, TierReport, TrustTier

TIER_DESCRIPTIONS: dict[TrustTier, str] = {
    TrustTier.PREMIER: "Top-performing school with verified excellence across all metrics",
    TrustTier.VERIFIED: "Established school with verified performance data",
    TrustTier.COMMUNITY: "Community-reviewed school with basic verification",
    TrustTier.UNVERIFIED: "Limited performance data available",
}

TIER_CRITERIA: dict[TrustTier, list[str]] = {
    TrustTier.PREMIER: [
        "Fleet utilization above 75%",
        "Offers 3+ training programs",
        "First-attempt pass rate above 85%",
        "Student satisfaction rating 4.0+",
    ],
    TrustTier.VERIFIED: [
        "Offers 3+ training programs or fleet utilization above 70%",
        "First-attempt pass rate above 75% or student satisfaction 3.5+",
    ],
    TrustTier.COMMUNITY: [
        "Offers at least 2 programs or fleet utilization above 60%",
    ],
    TrustTier.UNVERIFIED: [
        "Basic listing information",
        "Limited performance data",
    ],
}


def _signals(school: School) -> tuple[int, float, float, float]:
    """Program count, utilization, pass rate and satisfaction; missing values read as 0."""
    sig = school.fsp_signals
    return (
        len(school.programs),
        sig.fleet_utilization or 0.0,
        sig.pass_rate_first_attempt or 0.0,
        sig.student_satisfaction or 0.0,
    )


def classify_signals(
    program_count: int,
    utilization: float,
    pass_rate: float,
    satisfaction: float,
) -> TrustTier:
    if utilization > 75 and program_count >= 3 and pass_rate > 85 and satisfaction >= 4.0:
        return TrustTier.PREMIER
    if (program_count >= 3 or utilization > 70) and (pass_rate > 75 or satisfaction >= 3.5):
        return TrustTier.VERIFIED
    if program_count >= 2 or utilization > 60:
        return TrustTier.COMMUNITY
    return TrustTier.UNVERIFIED


def classify(school: School | None) -> TrustTier:
    """Derive the trust tier from a school's programs and performance signals."""
    if school is None:
        return TrustTier.UNVERIFIED
    return classify_signals(*_signals(school))


def meets_tier_requirements(school: School | None, target: TrustTier) -> bool:
    if school is None:
        return False
    return classify(school).rank >= target.rank


def tier_description(tier: TrustTier) -> str:
    return TIER_DESCRIPTIONS.get(tier, "")


def tier_criteria(tier: TrustTier) -> list[str]:
    return list(TIER_CRITERIA.get(tier, []))


def next_tier_recommendations(school: School | None) -> list[str]:
    """Concrete steps that would move a school up to the next tier."""
    if school is None:
        return []
    current = classify(school)
    program_count, utilization, pass_rate, satisfaction = _signals(school)
    steps: list[str] = []

    if current is TrustTier.UNVERIFIED:
        if program_count < 2:
            steps.append("Add more training programs")
        if utilization <= 60:
            steps.append("Improve fleet utilization above 60%")
    elif current is TrustTier.COMMUNITY:
        if program_count < 3:
            steps.append("Expand program offerings to at least 3")
        if utilization <= 70:
            steps.append("Increase fleet utilization above 70%")
        if pass_rate <= 75 and satisfaction < 3.5:
            steps.append("Raise first-attempt pass rate above 75% or satisfaction to 3.5+")
    elif current is TrustTier.VERIFIED:
        if utilization <= 75:
            steps.append("Achieve fleet utilization above 75%")
        if program_count < 3:
            steps.append("Offer at least 3 programs")
        if pass_rate <= 85:
            steps.append("Improve first-attempt pass rate above 85%")
        if satisfaction < 4.0:
            steps.append("Increase student satisfaction to 4.0+")

    return steps


def tier_report(school: School) -> TierReport:
    classified = classify(school)
    return TierReport(
        school_id=school.id,
        stored_tier=school.trust_tier,
        classified_tier=classified,
        description=tier_description(classified),
        criteria=tier_criteria(classified),
        next_steps=next_tier_recommendations(school),
    )
