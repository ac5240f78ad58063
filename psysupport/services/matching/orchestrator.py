"""
RecommendationOrchestrator: questionnaire in, top matches out.

Flow for one submission:
  1. persist the questionnaire
  2. build the candidate pool (verified, language + format filtered);
     if that is empty, retry once with language and format dropped
  3. rank the pool (LLM or rule-based fallback)
  4. store the full ranking on the questionnaire row
  5. return the top 3, enriched with profile details, best score first

The caller owns the transaction and must commit.
"""
import logging
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from psysupport.config import settings
from psysupport.models.questionnaire import QuestionnaireResponse
from psysupport.services import profiles
from psysupport.services.matching.ranking import TOP_N, RankingProvider
from psysupport.services.matching.schemas import (
    ANY_FORMAT,
    MatchResult,
    MatchView,
    QuestionnaireSubmit,
)
from psysupport.services.profiles import CandidateFilter, PsychologistCandidate

logger = logging.getLogger(__name__)


class RecommendationOrchestrator:
    def __init__(self, db: AsyncSession, ranking: Optional[RankingProvider] = None):
        self.db = db
        self.ranking = ranking or RankingProvider.from_settings()

    async def submit(
        self,
        questionnaire: QuestionnaireSubmit,
        user_id: Optional[uuid.UUID] = None,
    ) -> list[MatchView]:
        record = QuestionnaireResponse(
            user_id=user_id,
            guest_session_id=questionnaire.guest_session_id,
            gender=questionnaire.gender,
            age=questionnaire.age,
            preferred_language=questionnaire.preferred_language,
            main_issue=questionnaire.main_issue,
            urgency_level=questionnaire.urgency_level,
            format_preference=questionnaire.format_preference,
            additional_info=questionnaire.additional_info,
        )
        self.db.add(record)
        await self.db.flush()

        candidates = await self._candidate_pool(questionnaire)
        if not candidates:
            logger.info("[matching] No verified candidates for questionnaire %s", record.id)
            return []

        ranked = await self.ranking.rank(questionnaire, candidates)

        record.ranking_snapshot = [m.model_dump(mode="json") for m in ranked]
        await self.db.flush()

        matches = build_match_views(ranked, candidates)
        logger.info(
            "[matching] Questionnaire %s: pool=%d ranked=%d returned=%d",
            record.id, len(candidates), len(ranked), len(matches),
        )
        return matches

    async def _candidate_pool(self, q: QuestionnaireSubmit) -> list[PsychologistCandidate]:
        flt = CandidateFilter(
            language=q.preferred_language,
            work_format=None if q.format_preference == ANY_FORMAT else q.format_preference,
            only_verified=True,
            page=1,
            page_size=settings.CANDIDATE_POOL_SIZE,
        )
        pool = await profiles.get_verified_candidates(self.db, flt)
        if pool:
            return pool

        logger.info(
            "[matching] Empty pool for language=%s format=%s; relaxing filters",
            q.preferred_language, q.format_preference,
        )
        relaxed = flt.model_copy(update={"language": None, "work_format": None})
        return await profiles.get_verified_candidates(self.db, relaxed)


def build_match_views(
    ranked: list[MatchResult],
    candidates: list[PsychologistCandidate],
) -> list[MatchView]:
    """Enrich the first TOP_N ranked ids found in the pool, highest score first."""
    by_id = {c.id: c for c in candidates}
    picked: list[tuple[MatchResult, PsychologistCandidate]] = []
    seen = set()
    for m in ranked:
        c = by_id.get(m.psychologist_id)
        if c is None or c.id in seen:
            continue
        seen.add(c.id)
        picked.append((m, c))
        if len(picked) == TOP_N:
            break

    # stable: equal scores keep ranking order
    picked.sort(key=lambda pair: pair[0].score, reverse=True)

    return [
        MatchView(
            id=c.id,
            name=c.display_name,
            photo_path=c.photo_path,
            experience_years=c.experience_years,
            price=float(c.price_per_session),
            specializations=[s.name for s in c.specializations],
            match_reason=m.reason,
            match_score=m.score,
        )
        for m, c in picked
    ]
