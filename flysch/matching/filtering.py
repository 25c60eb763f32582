from __future__ import annotations

import logging

from ..geo.distance import within_radius
from ..schools.models import ProgramType, School
from .models import FilterBreakdown, MatchInputs, NoMatchDiagnostics

logger = logging.getLogger(__name__)


def within_budget(school: School, max_budget: float) -> bool:
    # A school without programs has an infinite entry cost.
    return school.min_program_cost <= max_budget


def offers_any_goal(school: School, goals: list[ProgramType]) -> bool:
    # Any one goal is enough; schools rarely run every requested program.
    return bool(school.program_types & set(goals))


def within_location(school: School, inputs: MatchInputs) -> bool:
    if inputs.location is None:
        return True
    return within_radius(school.location, inputs.location.center, inputs.location.radius)


def filter_candidates(schools: list[School], inputs: MatchInputs) -> list[School]:
    """Return the schools that satisfy every hard constraint, in input order."""
    return [
        s for s in schools
        if within_budget(s, inputs.max_budget)
        and offers_any_goal(s, inputs.training_goals)
        and within_location(s, inputs)
    ]


def format_money(amount: float) -> str:
    return f"${amount:,.0f}" if float(amount).is_integer() else f"${amount:,.2f}"


def diagnose_empty_pool(schools: list[School], inputs: MatchInputs) -> NoMatchDiagnostics:
    """Explain which constraint(s) emptied the candidate pool."""
    reasons: list[str] = []

    budget_matches = sum(1 for s in schools if within_budget(s, inputs.max_budget))
    program_matches = sum(1 for s in schools if offers_any_goal(s, inputs.training_goals))
    location_matches = sum(1 for s in schools if within_location(s, inputs))

    min_costs = [s.min_program_cost for s in schools if s.programs]
    min_budget_needed = min(min_costs) if min_costs else None
    if min_budget_needed is not None and inputs.max_budget < min_budget_needed:
        reasons.append(
            f"Budget too low. Minimum program cost available: {format_money(min_budget_needed)}. "
            f"Try increasing budget to at least {format_money(min_budget_needed)}."
        )

    available: set[ProgramType] = set()
    for s in schools:
        available |= s.program_types
    available_programs = sorted(available, key=lambda p: list(ProgramType).index(p))
    missing_programs = [g for g in inputs.training_goals if g not in available]
    if missing_programs:
        reasons.append(
            f"Programs not available: {', '.join(g.value for g in missing_programs)}. "
            f"Available programs: {', '.join(p.value for p in available_programs) or 'none'}."
        )

    schools_in_radius = None
    if inputs.location is not None:
        schools_in_radius = location_matches
        if location_matches == 0:
            reasons.append(
                f"No schools within {inputs.location.radius:g}km radius. "
                "Try increasing the radius or use a different location."
            )

    if not reasons:
        reasons.append(
            "No single school satisfies budget, program and location together. "
            "Try adjusting your filters."
        )

    logger.info(
        "Empty candidate pool: budget=%d program=%d location=%d of %d schools",
        budget_matches, program_matches, location_matches, len(schools),
    )

    return NoMatchDiagnostics(
        total_schools=len(schools),
        budget=inputs.max_budget,
        training_goals=list(inputs.training_goals),
        location=inputs.location,
        reasons=reasons,
        min_budget_needed=min_budget_needed,
        available_programs=available_programs,
        missing_programs=missing_programs,
        schools_in_radius=schools_in_radius,
        filter_breakdown=FilterBreakdown(
            budget_matches=budget_matches,
            program_matches=program_matches,
            location_matches=location_matches,
        ),
    )
