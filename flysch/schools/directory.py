from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from pydantic import ValidationError

from ..geo.distance import within_radius
from .cache import ResultCache
from .config import DEFAULT_STORE_CONFIG, StoreConfig
from .models import LocationFilter, Program, School, SchoolFilters
from .store import SchoolStore

logger = logging.getLogger(__name__)


def _program_overlaps_budget(program: Program, low: float, high: float) -> bool:
    return (
        low <= program.min_cost <= high
        or low <= program.max_cost <= high
        or (program.min_cost <= low and program.max_cost >= high)
    )


def filter_by_location(schools: Iterable[School], location: LocationFilter) -> list[School]:
    center = location.center
    return [s for s in schools if within_radius(s.location, center, location.radius)]


def apply_client_filters(schools: list[School], filters: SchoolFilters) -> list[School]:
    """Filters the store query cannot express; run after the fetch."""
    results = schools

    if filters.location:
        results = filter_by_location(results, filters.location)

    if filters.programs:
        wanted = set(filters.programs)
        results = [s for s in results if s.program_types & wanted]

    if filters.training_type:
        wanted_tt = set(filters.training_type)
        results = [
            s for s in results
            if any(wanted_tt & set(p.training_type) for p in s.programs)
        ]

    if filters.budget_min or filters.budget_max:
        low = filters.budget_min or 0.0
        high = filters.budget_max or float("inf")
        results = [
            s for s in results
            if any(_program_overlaps_budget(p, low, high) for p in s.programs)
        ]

    if filters.has_simulator:
        results = [s for s in results if s.fleet.simulators]

    if filters.has_g1000:
        results = [s for s in results if s.fleet.has_g1000]

    return results


def to_schools(rows: Iterable[dict[str, Any]]) -> list[School]:
    """Validate raw store rows, skipping (and logging) any that do not fit the schema."""
    schools: list[School] = []
    for row in rows:
        try:
            school = School.model_validate(row)
        except ValidationError:
            logger.warning(
                "Skipping malformed school row %s (%s)",
                row.get("id"), row.get("name"), exc_info=True,
            )
            continue
        if school.location is None and row.get("location") not in (None, ""):
            logger.warning(
                "Failed to transform location for school %s: %r",
                school.name or school.id, str(row.get("location"))[:50],
            )
        schools.append(school)
    return schools


class SchoolDirectory:
    """Read access to the school catalogue with the single-slot listing cache in front."""

    def __init__(
        self,
        store: SchoolStore,
        cache: ResultCache[School] | None = None,
        config: StoreConfig = DEFAULT_STORE_CONFIG,
    ) -> None:
        self.store = store
        self.cache = cache if cache is not None else ResultCache(ttl_seconds=config.cache_ttl_seconds)

    def load_all(self) -> list[School]:
        """Unfiltered, uncached fetch straight from the store."""
        return to_schools(self.store.select_schools())

    def fetch_schools(self, filters: SchoolFilters | None = None) -> list[School]:
        filters = filters or SchoolFilters()
        active = filters.has_active_filters()

        if not active:
            cached = self.cache.get()
            if cached is not None:
                logger.debug("Serving %d schools from cache", len(cached))
                return cached

        fetch_started_ms = self.cache.now_ms()
        rows = self.store.select_schools(
            search=filters.search,
            trust_tiers=filters.trust_tiers or None,
        )
        schools = to_schools(rows)
        logger.debug(
            "Fetched %d schools, %d with valid locations",
            len(schools), sum(1 for s in schools if s.location is not None),
        )

        results = apply_client_filters(schools, filters)

        # Filtered results overwrite the slot as well; see ResultCache.
        self.cache.put(results, fetch_started_ms)
        return results

    def search_schools(self, query: str) -> list[School]:
        return self.fetch_schools(SchoolFilters(search=query))

    def fetch_school(self, school_id: str) -> School | None:
        row = self.store.get_school(school_id)
        if row is None:
            return None
        schools = to_schools([row])
        return schools[0] if schools else None

    def subscribe_to_school(
        self,
        school_id: str,
        callback: Callable[[School], None],
    ) -> Callable[[], None]:
        """Deliver validated School updates for one row; returns the unsubscribe handle."""

        def _on_row(row: dict[str, Any]) -> None:
            schools = to_schools([row])
            if schools:
                callback(schools[0])

        return self.store.subscribe_to_school(school_id, _on_row)

    def clear_cache(self) -> None:
        self.cache.clear()
