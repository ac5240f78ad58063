"""
Ranking strategies for the recommendation engine.

Two strategies score a candidate pool against a questionnaire:

  * LlmRanker: asks Claude for the top matches; None when the answer is unusable.
  * rank_fallback: deterministic rule-based scoring; always succeeds.

RankingProvider picks between them: the LLM is tried only when one is
configured, and any unusable LLM answer falls through to the rules.
"""
import asyncio
import json
import logging
from typing import Optional

import anthropic
from pydantic import TypeAdapter, ValidationError

from psysupport.config import settings
from psysupport.services.matching.prompts import RANKING_SYSTEM_PROMPT, build_ranking_prompt
from psysupport.services.matching.schemas import MatchResult, QuestionnaireSubmit
from psysupport.services.profiles import BOTH_FORMATS, PsychologistCandidate

logger = logging.getLogger(__name__)

TOP_N = 3

FALLBACK_REASON = "Matched based on language, format, and specialization compatibility"

# Rule weights
BASE_SCORE = 50
LANGUAGE_BONUS = 20
FORMAT_BONUS = 15
SPECIALIZATION_BONUS = 25
URGENT_EXPERIENCE_BONUS = 10
URGENT_MIN_EXPERIENCE_YEARS = 5

_MATCH_LIST = TypeAdapter(list[MatchResult])


# ---------------------------------------------------------------------------
# Rule-based fallback
# ---------------------------------------------------------------------------

def fallback_score(q: QuestionnaireSubmit, c: PsychologistCandidate) -> int:
    score = BASE_SCORE

    language = q.preferred_language.lower()
    if any(lang.lower() == language for lang in c.languages):
        score += LANGUAGE_BONUS

    formats = {f.lower() for f in c.work_formats}
    if q.format_preference.lower() in formats or BOTH_FORMATS in formats:
        score += FORMAT_BONUS

    issue = q.main_issue.lower()
    if any(key in issue or issue in key for key in c.specialization_keys):
        score += SPECIALIZATION_BONUS

    if q.urgency_level == "high" and c.experience_years >= URGENT_MIN_EXPERIENCE_YEARS:
        score += URGENT_EXPERIENCE_BONUS

    return max(0, min(score, 100))


def rank_fallback(
    q: QuestionnaireSubmit,
    candidates: list[PsychologistCandidate],
) -> list[MatchResult]:
    """Top TOP_N candidates by rule score. Ties keep the pool's order."""
    scored = [
        MatchResult(psychologist_id=c.id, score=fallback_score(q, c), reason=FALLBACK_REASON)
        for c in candidates
    ]
    scored.sort(key=lambda m: m.score, reverse=True)
    return scored[:TOP_N]


# ---------------------------------------------------------------------------
# LLM strategy
# ---------------------------------------------------------------------------

class LlmRanker:
    def __init__(
        self,
        client: anthropic.AsyncAnthropic,
        model: str,
        timeout_seconds: float,
        max_tokens: int = 1000,
    ):
        self.client = client
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls) -> "LlmRanker":
        # wait_for bounds the call; no SDK-level retries
        client = anthropic.AsyncAnthropic(
            api_key=settings.ANTHROPIC_API_KEY, max_retries=0
        )
        return cls(
            client,
            model=settings.LLM_MODEL,
            timeout_seconds=settings.LLM_TIMEOUT_SECONDS,
            max_tokens=settings.LLM_MAX_TOKENS,
        )

    async def rank(
        self,
        q: QuestionnaireSubmit,
        candidates: list[PsychologistCandidate],
    ) -> Optional[list[MatchResult]]:
        raw = await self._call_claude(build_ranking_prompt(q, candidates))
        if not raw:
            return None

        try:
            data = _parse_json(raw)
            if isinstance(data, dict):
                data = data.get("matches", [])
            matches = _MATCH_LIST.validate_python(data)
        except (ValueError, ValidationError):
            logger.warning("[matching] LLM ranking JSON parse failed")
            return None

        known = {c.id for c in candidates}
        seen = set()
        usable = []
        for m in matches:
            if m.psychologist_id in known and m.psychologist_id not in seen:
                seen.add(m.psychologist_id)
                usable.append(m)
        if not usable:
            logger.warning("[matching] LLM ranking referenced no pool candidates")
            return None
        return usable

    async def _call_claude(self, user_content: str) -> str | None:
        try:
            resp = await asyncio.wait_for(
                self.client.messages.create(
                    model=self.model,
                    max_tokens=self.max_tokens,
                    system=RANKING_SYSTEM_PROMPT,
                    messages=[{"role": "user", "content": user_content}],
                    temperature=0.3,
                ),
                timeout=self.timeout_seconds,
            )
            return resp.content[0].text
        except asyncio.TimeoutError:
            logger.warning("[matching] LLM ranking timed out after %ss", self.timeout_seconds)
            return None
        except Exception:
            logger.exception("[matching] LLM ranking call failed")
            return None


def _parse_json(text: str):
    t = text.strip()
    if t.startswith("```json"):
        t = t[7:]
    if t.startswith("```"):
        t = t[3:]
    if t.endswith("```"):
        t = t[:-3]
    return json.loads(t.strip())


# ---------------------------------------------------------------------------
# Strategy selection
# ---------------------------------------------------------------------------

class RankingProvider:
    """Ranks a candidate pool, preferring the LLM when one is available."""

    def __init__(self, llm: Optional[LlmRanker] = None):
        self.llm = llm

    @classmethod
    def from_settings(cls) -> "RankingProvider":
        return cls(LlmRanker.from_settings() if settings.llm_enabled else None)

    async def rank(
        self,
        q: QuestionnaireSubmit,
        candidates: list[PsychologistCandidate],
    ) -> list[MatchResult]:
        if not candidates:
            return []

        if self.llm is not None:
            ranked = await self.llm.rank(q, candidates)
            if ranked:
                logger.info("[matching] Ranked %d candidates with LLM", len(candidates))
                return ranked

        logger.info("[matching] Ranked %d candidates with rule-based fallback", len(candidates))
        return rank_fallback(q, candidates)
