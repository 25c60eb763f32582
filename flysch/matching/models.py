from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..schools.models import LocationFilter, ProgramType, TrainingType


class ScheduleFlexibility(str, Enum):
    full_time = "full-time"
    part_time = "part-time"
    weekends = "weekends"
    evenings = "evenings"


class MatchInputs(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    max_budget: float = Field(..., gt=0, description="Total training budget in USD")
    training_goals: list[ProgramType] = Field(..., min_length=1)
    schedule_flexibility: ScheduleFlexibility = ScheduleFlexibility.full_time
    location: LocationFilter | None = None
    preferred_aircraft: list[str] | None = None
    preferred_training_type: TrainingType | None = None
    financing: bool | None = None
    veteran_benefits: bool | None = None
    housing_needed: bool | None = None


class ScoreResult(BaseModel):
    school_id: str
    school_name: str
    value: int = Field(..., ge=0, le=100)
    factors: dict[str, float]


class MatchSession(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str | None = None
    inputs: MatchInputs
    ranked_schools: list[str]
    match_scores: dict[str, int]
    debrief: str
    session_data: dict = Field(default_factory=dict)
    created_at: datetime
    completed_at: datetime


class FilterBreakdown(BaseModel):
    budget_matches: int
    program_matches: int
    location_matches: int


class NoMatchDiagnostics(BaseModel):
    total_schools: int
    budget: float
    training_goals: list[ProgramType]
    location: LocationFilter | None = None
    reasons: list[str] = Field(default_factory=list)
    min_budget_needed: float | None = None
    available_programs: list[ProgramType] | None = None
    missing_programs: list[ProgramType] | None = None
    schools_in_radius: int | None = None
    filter_breakdown: FilterBreakdown


class NoMatch(BaseModel):
    message: str
    diagnostics: NoMatchDiagnostics | None = None
