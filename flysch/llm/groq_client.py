from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Union

from groq import Groq
from pydantic import BaseModel, Field, ValidationError

from ..matching.models import MatchInputs
from ..schools.models import School
from ..schools.tiers import classify
from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert flight school advisor with deep knowledge of pilot "
    "training programs. Rank candidate schools for a student and explain the "
    "ranking in plain English.\n\n"
    "Return ONLY valid JSON in this exact format:\n"
    '{"rankings": [{"schoolId": "<school id>", "score": <0-100>, "reason": "<brief reason>"}], '
    '"debrief": "<2-3 paragraph explanation>"}\n'
    "Include only schools from the provided list, each at most once. "
    "Order from best match to worst."
)


@dataclass(frozen=True)
class AiRanking:
    ranked_school_ids: list[str]
    scores: dict[str, int]
    debrief: str
    reasons: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class AiError:
    kind: str  # "disabled" | "transport" | "parse" | "invalid"
    message: str


AiResult = Union[AiRanking, AiError]


class _RankingItem(BaseModel):
    school_id: str = Field(..., alias="schoolId", min_length=1)
    score: float = Field(..., ge=0, le=100)
    reason: str = ""


class _RankingPayload(BaseModel):
    rankings: list[_RankingItem] = Field(..., min_length=1)
    debrief: str = Field(..., min_length=1)


def candidate_payload(school: School) -> dict[str, Any]:
    """Condensed view of one school, trimmed to keep the prompt small."""
    signals = school.fsp_signals
    return {
        "id": school.id,
        "name": school.name,
        "location": ", ".join(p for p in (school.city, school.state) if p) or "unknown",
        "programs": [
            {
                "type": p.type.value,
                "costRange": f"${p.min_cost:,.0f}-${p.max_cost:,.0f}",
                "hours": p.min_hours.model_dump(exclude_none=True),
            }
            for p in school.programs
        ],
        "fleet": {
            "totalAircraft": school.fleet.aircraft_total,
            "hasSimulators": bool(school.fleet.simulators),
            "hasG1000": school.fleet.has_g1000,
        },
        "trustTier": classify(school).value,
        "fspSignals": {
            "avgHoursToPPL": signals.avg_hours_to_ppl,
            "fleetUtilization": signals.fleet_utilization,
            "passRate": signals.pass_rate_first_attempt,
        },
    }


def _build_user_message(inputs: MatchInputs, candidates: list[School]) -> str:
    lines = ["## Student Requirements"]
    lines.append(f"- Budget: ${inputs.max_budget:,.0f}")
    lines.append(f"- Training Goals: {', '.join(g.value for g in inputs.training_goals)}")
    lines.append(f"- Schedule: {inputs.schedule_flexibility.value}")
    if inputs.location:
        lines.append(f"- Location: Within {inputs.location.radius:g}km radius")
    if inputs.preferred_aircraft:
        lines.append(f"- Preferred Aircraft: {', '.join(inputs.preferred_aircraft)}")
    if inputs.preferred_training_type:
        lines.append(f"- Preferred Training Type: {inputs.preferred_training_type.value}")
    if inputs.financing:
        lines.append("- Needs financing options")
    if inputs.veteran_benefits:
        lines.append("- Using veteran benefits")
    if inputs.housing_needed:
        lines.append("- Needs housing")

    lines.append("\n## Candidate Schools")
    lines.append(json.dumps([candidate_payload(s) for s in candidates], indent=2))

    lines.append("\n## Task")
    lines.append("1. Rank these schools from best to worst match for this student.")
    lines.append("2. Give each school a match score from 0 to 100.")
    lines.append(
        "3. Write a 2-3 paragraph debrief: why the top school fits best, key "
        "differentiators between the top 3, and any trade-offs."
    )
    lines.append(
        "Consider: budget fit (40%), program quality (30%), location convenience (15%), "
        "fleet quality (10%), trust tier (5%)."
    )
    return "\n".join(lines)


def _validate(content: str, candidate_ids: set[str]) -> AiResult:
    try:
        raw = json.loads(content)
    except json.JSONDecodeError as exc:
        return AiError("parse", f"Response is not valid JSON: {exc}")

    try:
        payload = _RankingPayload.model_validate(raw)
    except ValidationError as exc:
        return AiError("invalid", f"Invalid AI response format: {exc.error_count()} error(s)")

    ranked_ids = [item.school_id for item in payload.rankings]
    unknown = [sid for sid in ranked_ids if sid not in candidate_ids]
    if unknown:
        return AiError("invalid", f"Response ranks unknown school ids: {unknown[:5]}")
    if len(set(ranked_ids)) != len(ranked_ids):
        return AiError("invalid", "Response ranks the same school more than once")

    return AiRanking(
        ranked_school_ids=ranked_ids,
        scores={item.school_id: int(math.floor(item.score + 0.5)) for item in payload.rankings},
        debrief=payload.debrief,
        reasons={item.school_id: item.reason for item in payload.rankings if item.reason},
    )


def rank_schools(
    inputs: MatchInputs,
    candidates: list[School],
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> AiResult:
    """
    Ask Groq to rank the candidate pool and write a debrief.

    Returns ``AiRanking`` only when the whole response is structurally valid.
    Every other outcome (no credentials, transport error or timeout, bad JSON,
    missing ``rankings``/``debrief``, unknown ids) comes back as ``AiError``;
    nothing is raised.
    """
    if not config.available:
        return AiError("disabled", "No Groq API key configured")

    if not candidates:
        return AiError("invalid", "No candidates to rank")

    try:
        client = Groq(api_key=config.api_key, timeout=config.timeout)
        response = client.chat.completions.create(
            model=config.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": _build_user_message(inputs, candidates)},
            ],
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            response_format={"type": "json_object"},
        )
        content = response.choices[0].message.content or ""
    except Exception as exc:
        logger.warning("Groq ranking call failed", exc_info=True)
        return AiError("transport", str(exc) or type(exc).__name__)

    result = _validate(content, {s.id for s in candidates})
    if isinstance(result, AiError):
        logger.warning("Discarding Groq ranking (%s): %s | sample=%r", result.kind, result.message, content[:200])
    return result
