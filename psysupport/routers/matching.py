"""
REST API for the matching questionnaire.

POST /matching/questionnaire - submit answers, get up to 3 ranked psychologists.
Guests may submit without X-User-Id (optionally passing guest_session_id).
"""
import uuid
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from psysupport.database import get_db
from psysupport.routers.deps import optional_user_id
from psysupport.services.matching.orchestrator import RecommendationOrchestrator
from psysupport.services.matching.ranking import RankingProvider
from psysupport.services.matching.schemas import MatchView, QuestionnaireSubmit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/matching", tags=["matching"])


def get_ranking_provider() -> RankingProvider:
    return RankingProvider.from_settings()


@router.post("/questionnaire", response_model=list[MatchView])
async def submit_questionnaire(
    body: QuestionnaireSubmit,
    user_id: Optional[uuid.UUID] = Depends(optional_user_id),
    ranking: RankingProvider = Depends(get_ranking_provider),
    db: AsyncSession = Depends(get_db),
):
    matches = await RecommendationOrchestrator(db, ranking).submit(body, user_id=user_id)
    await db.commit()
    return matches
