from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..geo.location import GeoPoint, normalize


class ProgramType(str, Enum):
    PPL = "PPL"
    IR = "IR"
    CPL = "CPL"
    CFI = "CFI"
    CFII = "CFII"
    MEI = "MEI"
    ATP = "ATP"


class TrainingType(str, Enum):
    PART_61 = "Part 61"
    PART_141 = "Part 141"


class TrustTier(str, Enum):
    UNVERIFIED = "Unverified"
    COMMUNITY = "Community"
    VERIFIED = "Verified"
    PREMIER = "Premier"

    @property
    def rank(self) -> int:
        return TIER_RANK[self]


TIER_RANK: dict[TrustTier, int] = {
    TrustTier.UNVERIFIED: 1,
    TrustTier.COMMUNITY: 2,
    TrustTier.VERIFIED: 3,
    TrustTier.PREMIER: 4,
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProgramHours(BaseModel):
    part61: float | None = None
    part141: float | None = None


class Program(_CamelModel):
    type: ProgramType
    min_cost: float = Field(..., ge=0)
    max_cost: float = Field(..., ge=0)
    inclusions: list[str] = Field(default_factory=list)
    min_hours: ProgramHours = Field(default_factory=ProgramHours)
    max_hours: ProgramHours | None = None
    min_months: int | None = None
    max_months: int | None = None
    training_type: list[TrainingType] = Field(default_factory=list)
    description: str | None = None

    @field_validator("min_hours", "max_hours", mode="before")
    @classmethod
    def _hours_from_number(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return {"part61": value, "part141": value}
        return value

    @model_validator(mode="after")
    def _cost_range(self) -> Program:
        if self.min_cost > self.max_cost:
            raise ValueError("minCost must not exceed maxCost")
        return self

    @property
    def midpoint_cost(self) -> float:
        return (self.min_cost + self.max_cost) / 2


class Aircraft(_CamelModel):
    type: str
    count: int = Field(default=0, ge=0)
    has_g1000: bool = False
    hourly_rate: float | None = None


class Simulators(BaseModel):
    count: int = 0
    types: list[str] = Field(default_factory=list)


class Fleet(_CamelModel):
    aircraft: list[Aircraft] = Field(default_factory=list)
    simulators: Simulators | None = None
    total_aircraft: int | None = None

    @property
    def aircraft_total(self) -> int:
        if self.total_aircraft is not None:
            return self.total_aircraft
        return sum(a.count for a in self.aircraft)

    @property
    def has_g1000(self) -> bool:
        return any(a.has_g1000 for a in self.aircraft)


class FSPSignals(BaseModel):
    """Flight-school performance telemetry. Every field is optional."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    avg_hours_to_ppl: float | None = Field(default=None, alias="avgHoursToPPL")
    avg_hours_to_ir: float | None = Field(default=None, alias="avgHoursToIR")
    avg_hours_to_cpl: float | None = Field(default=None, alias="avgHoursToCPL")
    cancellation_rate: float | None = Field(default=None, alias="cancellationRate")
    fleet_utilization: float | None = Field(default=None, alias="fleetUtilization")
    student_satisfaction: float | None = Field(default=None, ge=0, le=5, alias="studentSatisfaction")
    pass_rate_first_attempt: float | None = Field(default=None, alias="passRateFirstAttempt")
    avg_time_to_complete: float | None = Field(default=None, alias="avgTimeToComplete")


class School(BaseModel):
    id: str
    name: str
    location: GeoPoint | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None
    programs: list[Program] = Field(default_factory=list)
    fleet: Fleet = Field(default_factory=Fleet)
    instructors_count: int = 0
    trust_tier: TrustTier = TrustTier.UNVERIFIED
    fsp_signals: FSPSignals = Field(default_factory=FSPSignals)
    verified_at: str | None = None
    claimed_by: str | None = None
    website: str | None = None
    phone: str | None = None
    email: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("location", mode="before")
    @classmethod
    def _normalize_location(cls, value: Any) -> GeoPoint | None:
        return normalize(value)

    @field_validator("trust_tier", mode="before")
    @classmethod
    def _tier_or_unverified(cls, value: Any) -> Any:
        if isinstance(value, TrustTier):
            return value
        if isinstance(value, str) and value.strip() in {t.value for t in TrustTier}:
            return value.strip()
        return TrustTier.UNVERIFIED

    @field_validator("fleet", "fsp_signals", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("programs", mode="before")
    @classmethod
    def _none_as_no_programs(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def program_types(self) -> set[ProgramType]:
        return {p.type for p in self.programs}

    @property
    def min_program_cost(self) -> float:
        """Cheapest program entry cost; +inf for a school with no programs."""
        return min((p.min_cost for p in self.programs), default=float("inf"))


class LocationFilter(BaseModel):
    """A search centre plus radius in kilometres."""

    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)
    radius: float = Field(..., gt=0, description="Radius in km")

    @property
    def center(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lng=self.lng)


class SchoolFilters(BaseModel):
    search: str | None = None
    programs: list[ProgramType] = Field(default_factory=list)
    budget_min: float | None = Field(default=None, ge=0)
    budget_max: float | None = Field(default=None, ge=0)
    training_type: list[TrainingType] = Field(default_factory=list)
    location: LocationFilter | None = None
    trust_tiers: list[TrustTier] = Field(default_factory=list)
    has_simulator: bool = False
    has_g1000: bool = False

    def has_active_filters(self) -> bool:
        return bool(
            self.search
            or self.location
            or self.programs
            or self.trust_tiers
            or self.training_type
            or self.budget_min
            or self.budget_max
            or self.has_simulator
            or self.has_g1000
        )


class TierReport(BaseModel):
    school_id: str
    stored_tier: TrustTier
    classified_tier: TrustTier
    description: str
    criteria: list[str]
    next_steps: list[str]
