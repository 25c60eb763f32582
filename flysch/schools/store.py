from __future__ import annotations

import logging
import math
import threading
import uuid
from collections import defaultdict
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

import pandas as pd

from .models import TrustTier

logger = logging.getLogger(__name__)

Row = dict[str, Any]


class StoreError(RuntimeError):
    """Raised when the school store cannot serve a query."""


class SchoolStore(Protocol):
    def select_schools(
        self,
        search: str | None = None,
        trust_tiers: Iterable[TrustTier | str] | None = None,
    ) -> list[Row]: ...

    def get_school(self, school_id: str) -> Row | None: ...

    def insert_match_session(self, row: Row) -> Row: ...

    def list_match_sessions(self, limit: int = 10, user_id: str | None = None) -> list[Row]: ...

    def subscribe_to_school(self, school_id: str, callback: Callable[[Row], None]) -> Callable[[], None]: ...


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _clean_row(row: dict[str, Any]) -> Row:
    """Drop the NaN padding pandas adds for keys a record did not have."""
    return {k: v for k, v in row.items() if not _is_missing(v)}


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemorySchoolStore:
    """
    Process-local school store backed by a pandas DataFrame.

    Supports the same narrow query surface as the hosted table:
    ``name ILIKE '%q%'``, ``trust_tier IN (...)`` and ``ORDER BY name ASC``.
    Everything else is filtered by the caller.
    """

    def __init__(self, records: Iterable[Row] = ()) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, Row] = {}
        self._sessions: list[Row] = []
        self._subscribers: dict[str, list[Callable[[Row], None]]] = defaultdict(list)
        self._df = pd.DataFrame()
        self.insert_schools(records)

    @classmethod
    def from_json(cls, path: Path) -> InMemorySchoolStore:
        """Load a seed file written by ``flysch.seed.generate``."""
        if not path.exists():
            logger.warning("Seed file %s not found, starting with an empty school store", path)
            return cls()
        try:
            df = pd.read_json(path, orient="records", dtype=False, convert_dates=False)
        except ValueError as exc:
            raise StoreError(f"Could not read school seed file {path}") from exc
        records = [_clean_row(r) for r in df.to_dict(orient="records")]
        logger.info("Loaded %d schools from %s", len(records), path)
        return cls(records)

    # ── Schools ──────────────────────────────────────────────────────────

    def _reindex(self) -> None:
        self._df = pd.DataFrame.from_records(list(self._records.values()))

    def insert_schools(self, records: Iterable[Row]) -> list[Row]:
        inserted: list[Row] = []
        with self._lock:
            for record in records:
                row = dict(record)
                row["id"] = str(row.get("id") or uuid.uuid4())
                row.setdefault("created_at", _utcnow())
                row.setdefault("updated_at", row["created_at"])
                self._records[row["id"]] = row
                inserted.append(row)
            self._reindex()
        return inserted

    def select_schools(
        self,
        search: str | None = None,
        trust_tiers: Iterable[TrustTier | str] | None = None,
    ) -> list[Row]:
        with self._lock:
            df = self._df
            records = dict(self._records)
        if df.empty:
            return []

        mask = pd.Series(True, index=df.index)
        if search:
            mask = mask & df["name"].fillna("").astype(str).str.contains(
                search, case=False, regex=False
            )
        tiers = [t.value if isinstance(t, TrustTier) else str(t) for t in (trust_tiers or [])]
        if tiers:
            if "trust_tier" not in df.columns:
                return []
            mask = mask & df["trust_tier"].isin(tiers)

        ordered_ids = df.loc[mask].sort_values("name", kind="stable")["id"].tolist()
        return [dict(records[i]) for i in ordered_ids if i in records]

    def get_school(self, school_id: str) -> Row | None:
        with self._lock:
            row = self._records.get(str(school_id))
            return dict(row) if row is not None else None

    def update_school(self, school_id: str, changes: Row) -> Row | None:
        with self._lock:
            current = self._records.get(str(school_id))
            if current is None:
                return None
            updated = {**current, **changes, "id": current["id"], "updated_at": _utcnow()}
            self._records[current["id"]] = updated
            self._reindex()
            callbacks = list(self._subscribers.get(current["id"], []))

        for callback in callbacks:
            try:
                callback(dict(updated))
            except Exception:
                logger.warning("School update subscriber failed for %s", school_id, exc_info=True)
        return updated

    def subscribe_to_school(self, school_id: str, callback: Callable[[Row], None]) -> Callable[[], None]:
        key = str(school_id)
        with self._lock:
            self._subscribers[key].append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers.get(key, []):
                    self._subscribers[key].remove(callback)

        return unsubscribe

    # ── Match sessions ───────────────────────────────────────────────────

    def insert_match_session(self, row: Row) -> Row:
        stored = dict(row)
        stored.setdefault("id", str(uuid.uuid4()))
        stored.setdefault("created_at", _utcnow())
        with self._lock:
            self._sessions.append(stored)
        return stored

    def list_match_sessions(self, limit: int = 10, user_id: str | None = None) -> list[Row]:
        with self._lock:
            sessions = list(self._sessions)
        if user_id:
            sessions = [s for s in sessions if s.get("user_id") == user_id]
        sessions.sort(key=lambda s: s.get("created_at", ""), reverse=True)
        return sessions[:limit]
