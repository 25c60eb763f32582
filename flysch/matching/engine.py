from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Union

from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.groq_client import AiRanking, rank_schools
from ..schools.directory import SchoolDirectory
from ..schools.models import School
from .filtering import diagnose_empty_pool, filter_candidates, format_money
from .models import MatchInputs, MatchSession, NoMatch
from .scoring import FALLBACK_LIMIT, build_fallback_debrief, rank_by_score

logger = logging.getLogger(__name__)

MatchOutcome = Union[MatchSession, NoMatch]


class MatchEngine:
    """
    Runs one matching request end to end.

    Holds the school directory (and through it the listing cache) plus the
    Groq configuration. Exactly one of two paths produces each session: the
    AI ranking when Groq is configured and answers with a valid payload, or
    the deterministic score-based ranking otherwise.
    """

    def __init__(
        self,
        directory: SchoolDirectory,
        llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
    ) -> None:
        self.directory = directory
        self.llm_config = llm_config

    def run_match(self, inputs: MatchInputs, user_id: str | None = None) -> MatchOutcome:
        start_time = time.time()

        # Fresh read: the listing cache may hold a filtered slice.
        schools = self.directory.load_all()
        if not schools:
            logger.info("Match requested but the school store is empty")
            return NoMatch(message="No schools found")

        logger.info(
            "Matching %d schools: budget=%s, goals=[%s]",
            len(schools),
            format_money(inputs.max_budget),
            ", ".join(g.value for g in inputs.training_goals),
        )

        candidates = filter_candidates(schools, inputs)
        logger.info("After filtering: %d candidates match criteria", len(candidates))

        if not candidates:
            diagnostics = diagnose_empty_pool(schools, inputs)
            return NoMatch(
                message="No schools match your criteria. " + " ".join(diagnostics.reasons),
                diagnostics=diagnostics,
            )

        ranked_ids, scores, debrief = self._rank(candidates, inputs)

        now = datetime.now(timezone.utc)
        session = MatchSession(
            id=str(uuid.uuid4()),
            user_id=user_id,
            inputs=inputs,
            ranked_schools=ranked_ids,
            match_scores=scores,
            debrief=debrief,
            session_data={
                "candidate_count": len(candidates),
                "total_schools": len(schools),
            },
            created_at=now,
            completed_at=now,
        )
        self._persist(session)

        elapsed_ms = round((time.time() - start_time) * 1000, 1)
        logger.info("Match %s ranked %d schools in %sms", session.id, len(ranked_ids), elapsed_ms)
        return session

    def _rank(
        self,
        candidates: list[School],
        inputs: MatchInputs,
    ) -> tuple[list[str], dict[str, int], str]:
        if not self.llm_config.available:
            logger.info("No Groq API key configured, using rule-based ranking")
            return self._rank_by_rules(candidates, inputs)

        result = rank_schools(inputs, candidates, self.llm_config)
        if isinstance(result, AiRanking):
            return result.ranked_school_ids, result.scores, result.debrief

        logger.warning("AI ranking unavailable (%s), falling back to rule-based ranking", result.kind)
        return self._rank_by_rules(candidates, inputs)

    def _rank_by_rules(
        self,
        candidates: list[School],
        inputs: MatchInputs,
    ) -> tuple[list[str], dict[str, int], str]:
        ranked = rank_by_score(candidates, inputs, limit=FALLBACK_LIMIT)
        debrief = build_fallback_debrief(ranked, inputs, candidate_count=len(candidates))
        return (
            [r.school_id for r in ranked],
            {r.school_id: r.value for r in ranked},
            debrief,
        )

    def _persist(self, session: MatchSession) -> None:
        row = {
            "id": session.id,
            "user_id": session.user_id,
            "inputs": session.inputs.model_dump(mode="json", by_alias=True),
            "ranked_schools": list(session.ranked_schools),
            "match_scores": dict(session.match_scores),
            "debrief": session.debrief,
            "completed_at": session.completed_at.isoformat(),
            "created_at": session.created_at.isoformat(),
        }
        try:
            self.directory.store.insert_match_session(row)
        except Exception:
            logger.warning("Error saving match session %s", session.id, exc_info=True)

    def match_history(self, limit: int = 10, user_id: str | None = None) -> list[dict]:
        return self.directory.store.list_match_sessions(limit=limit, user_id=user_id)
