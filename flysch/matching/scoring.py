from __future__ import annotations

import math

from ..geo.distance import proximity_score
from ..schools.models import School, TrustTier
from ..schools.tiers import classify
from .filtering import format_money
from .models import MatchInputs, ScoreResult

WEIGHTS: dict[str, float] = {
    "budget": 0.40,
    "programs": 0.30,
    "location": 0.15,
    "fleet": 0.10,
    "trust": 0.05,
}

FACTOR_LABELS: dict[str, str] = {
    "budget": "budget fit",
    "programs": "program coverage",
    "location": "location proximity",
    "fleet": "fleet quality",
    "trust": "trust tier",
}

TIER_SCORES: dict[TrustTier, float] = {
    TrustTier.PREMIER: 1.0,
    TrustTier.VERIFIED: 0.8,
    TrustTier.COMMUNITY: 0.5,
    TrustTier.UNVERIFIED: 0.3,
}

NEUTRAL_LOCATION_SCORE = 0.5
FLEET_SATURATION = 10
FALLBACK_LIMIT = 10


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def budget_fit(school: School, max_budget: float) -> float:
    if not school.programs:
        return 0.0
    avg_cost = sum(p.midpoint_cost for p in school.programs) / len(school.programs)
    return max(0.0, 1.0 - abs(max_budget - avg_cost) / max_budget)


def program_coverage(school: School, inputs: MatchInputs) -> float:
    goals = set(inputs.training_goals)
    if not goals:
        return 0.0
    return len(goals & school.program_types) / len(goals)


def location_fit(school: School, inputs: MatchInputs) -> float:
    if inputs.location is None or school.location is None:
        return NEUTRAL_LOCATION_SCORE
    return proximity_score(school.location, inputs.location.center, inputs.location.radius)


def fleet_quality(school: School) -> float:
    return min(1.0, school.fleet.aircraft_total / FLEET_SATURATION)


def score_school(school: School, inputs: MatchInputs) -> ScoreResult:
    """Weighted multi-factor match score in [0, 100]."""
    factors = {
        "budget": _clamp(budget_fit(school, inputs.max_budget)),
        "programs": _clamp(program_coverage(school, inputs)),
        "location": _clamp(location_fit(school, inputs)),
        "fleet": _clamp(fleet_quality(school)),
        "trust": _clamp(TIER_SCORES[classify(school)]),
    }
    total = sum(WEIGHTS[name] * value for name, value in factors.items())
    return ScoreResult(
        school_id=school.id,
        school_name=school.name,
        value=min(100, max(0, _round_half_up(total * 100))),
        factors=factors,
    )


def rank_by_score(
    candidates: list[School],
    inputs: MatchInputs,
    limit: int | None = None,
) -> list[ScoreResult]:
    """Score every candidate and sort best-first; ties keep input order."""
    scored = [score_school(s, inputs) for s in candidates]
    scored.sort(key=lambda r: r.value, reverse=True)
    return scored[:limit] if limit is not None else scored


def build_fallback_debrief(
    ranked: list[ScoreResult],
    inputs: MatchInputs,
    candidate_count: int,
) -> str:
    programs = ", ".join(g.value for g in inputs.training_goals)
    budget = format_money(inputs.max_budget)

    opening = (
        f"Based on your requirements for {programs} training with a budget of {budget}, "
        f"we found {candidate_count} schools that meet your criteria"
    )
    if candidate_count > len(ranked):
        opening += f" and ranked the top {len(ranked)}"
    opening += "."

    if not ranked:
        return opening

    top = ranked[0]
    breakdown = ", ".join(
        f"{FACTOR_LABELS[name]} ({_round_half_up(value * 100)}%)"
        for name, value in top.factors.items()
    )
    middle = f"Your top match, {top.school_name}, scored {top.value}/100 based on {breakdown}."
    if len(ranked) > 1:
        gap = top.value - ranked[1].value
        middle += (
            f" The next closest match is within {gap} points, "
            "so we recommend comparing your top 3-5 options."
        )

    closing = (
        f"Key factors in your decision should include instructor availability for "
        f"{inputs.schedule_flexibility.value} schedules, actual aircraft condition and "
        "availability, and the school's learning environment. We recommend scheduling "
        "discovery flights or facility tours with your top choices before deciding."
    )
    return "\n\n".join([opening, middle, closing])
