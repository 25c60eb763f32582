from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .llm.config import DEFAULT_LLM_CONFIG
from .matching.engine import MatchEngine
from .matching.models import MatchInputs, MatchSession, NoMatch
from .schools.config import DEFAULT_STORE_CONFIG
from .schools.directory import SchoolDirectory
from .schools.models import (
    LocationFilter,
    ProgramType,
    School,
    SchoolFilters,
    TierReport,
    TrainingType,
    TrustTier,
)
from .schools.store import InMemorySchoolStore, StoreError
from .schools.tiers import tier_report

logger = logging.getLogger(__name__)

app = FastAPI(title="Flight School Matching API", version="1.0.0")

_STORE_FAILURE = "Failed to load flight schools. Please try again."

_engine: MatchEngine | None = None


def get_engine() -> MatchEngine:
    """Build the process's MatchEngine on first use."""
    global _engine
    if _engine is None:
        store = InMemorySchoolStore.from_json(DEFAULT_STORE_CONFIG.seed_path)
        directory = SchoolDirectory(store, config=DEFAULT_STORE_CONFIG)
        _engine = MatchEngine(directory, llm_config=DEFAULT_LLM_CONFIG)
    return _engine


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError):
    if request.url.path == "/match":
        return JSONResponse(
            status_code=400,
            content={
                "detail": "Invalid match inputs. Budget and training goals are required.",
                "errors": jsonable_encoder(exc.errors()),
            },
        )
    return await request_validation_exception_handler(request, exc)


@app.exception_handler(StoreError)
async def _store_error(request: Request, exc: StoreError):
    logger.error("Store failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": _STORE_FAILURE})


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Schools ──────────────────────────────────────────────────────────────


@app.get("/schools", response_model=list[School])
def list_schools(
    search: str | None = None,
    program: list[ProgramType] = Query(default=[]),
    training_type: list[TrainingType] = Query(default=[]),
    trust_tier: list[TrustTier] = Query(default=[]),
    budget_min: float | None = Query(default=None, ge=0),
    budget_max: float | None = Query(default=None, ge=0),
    lat: float | None = Query(default=None, ge=-90, le=90),
    lng: float | None = Query(default=None, ge=-180, le=180),
    radius: float | None = Query(default=None, gt=0),
    has_simulator: bool = False,
    has_g1000: bool = False,
    engine: MatchEngine = Depends(get_engine),
) -> list[School]:
    location = None
    if lat is not None and lng is not None and radius is not None:
        location = LocationFilter(lat=lat, lng=lng, radius=radius)

    filters = SchoolFilters(
        search=search,
        programs=program,
        training_type=training_type,
        trust_tiers=trust_tier,
        budget_min=budget_min,
        budget_max=budget_max,
        location=location,
        has_simulator=has_simulator,
        has_g1000=has_g1000,
    )
    return engine.directory.fetch_schools(filters)


@app.get("/schools/{school_id}", response_model=School)
def get_school(school_id: str, engine: MatchEngine = Depends(get_engine)) -> School:
    school = engine.directory.fetch_school(school_id)
    if school is None:
        raise HTTPException(status_code=404, detail="School not found")
    return school


@app.get("/schools/{school_id}/tier", response_model=TierReport)
def get_school_tier(school_id: str, engine: MatchEngine = Depends(get_engine)) -> TierReport:
    school = engine.directory.fetch_school(school_id)
    if school is None:
        raise HTTPException(status_code=404, detail="School not found")
    return tier_report(school)


# ── Matching ─────────────────────────────────────────────────────────────


@app.post("/match", response_model=MatchSession)
def match(
    body: MatchInputs,
    user_id: str | None = None,
    engine: MatchEngine = Depends(get_engine),
) -> MatchSession:
    outcome = engine.run_match(body, user_id=user_id)
    if isinstance(outcome, NoMatch):
        diagnostics = outcome.diagnostics.model_dump(mode="json") if outcome.diagnostics else None
        raise HTTPException(
            status_code=404,
            detail={"message": outcome.message, "diagnostics": diagnostics},
        )
    return outcome


@app.get("/match/history")
def match_history(
    limit: int = Query(default=10, ge=1, le=100),
    user_id: str | None = None,
    engine: MatchEngine = Depends(get_engine),
) -> list[dict]:
    return engine.match_history(limit=limit, user_id=user_id)


# ── Cache ────────────────────────────────────────────────────────────────


@app.get("/cache/stats")
def cache_stats(engine: MatchEngine = Depends(get_engine)) -> dict:
    return engine.directory.cache.stats()


@app.post("/cache/clear")
def cache_clear(engine: MatchEngine = Depends(get_engine)) -> dict[str, str]:
    engine.directory.clear_cache()
    return {"status": "cleared"}
