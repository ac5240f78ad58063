"""Tests for the recommendation orchestrator against the database."""
import uuid

import pytest
from sqlalchemy import select

from psysupport.models import QuestionnaireResponse
from psysupport.services import profiles
from psysupport.services.matching.orchestrator import RecommendationOrchestrator
from psysupport.services.matching.ranking import FALLBACK_REASON, RankingProvider
from psysupport.services.matching.schemas import QuestionnaireSubmit
from psysupport.services.profiles import CandidateFilter


def questionnaire(**overrides) -> QuestionnaireSubmit:
    data = {
        "gender": "male",
        "age": 34,
        "preferred_language": "ru",
        "main_issue": "anxiety",
        "urgency_level": "medium",
        "format_preference": "online",
    }
    data.update(overrides)
    return QuestionnaireSubmit(**data)


def orchestrator(db) -> RecommendationOrchestrator:
    return RecommendationOrchestrator(db, RankingProvider())


async def _saved(db) -> list[QuestionnaireResponse]:
    result = await db.execute(select(QuestionnaireResponse))
    return list(result.scalars().all())


class TestSubmit:
    async def test_returns_enriched_match(self, db, seed):
        p = await seed.psychologist(specializations=("anxiety",), experience_years=7)
        matches = await orchestrator(db).submit(questionnaire())

        assert len(matches) == 1
        m = matches[0]
        assert m.id == p.id
        assert m.name == "Dilnoza Karimova"
        assert m.match_score == 100
        assert m.match_reason == FALLBACK_REASON
        assert m.specializations == ["Тревожность"]
        assert m.price == 150.0
        assert m.experience_years == 7

    async def test_questionnaire_and_snapshot_persisted(self, db, seed):
        p = await seed.psychologist()
        user = await seed.user()
        await orchestrator(db).submit(
            questionnaire(guest_session_id="guest-42"), user_id=user.id
        )
        await db.commit()

        [row] = await _saved(db)
        assert row.user_id == user.id
        assert row.guest_session_id == "guest-42"
        assert row.main_issue == "anxiety"
        assert row.ranking_snapshot == [
            {"psychologist_id": str(p.id), "score": 85, "reason": FALLBACK_REASON}
        ]

    async def test_top_three_best_first(self, db, seed):
        p1 = await seed.psychologist("P1", work_formats="offline")                           # 70
        p2 = await seed.psychologist("P2", specializations=("anxiety",))                     # 95
        await seed.psychologist("P3")                                                        # 70
        p4 = await seed.psychologist("P4", specializations=("anxiety",), work_formats="both")  # 100

        matches = await orchestrator(db).submit(questionnaire(format_preference="any"))
        assert [m.match_score for m in matches] == [100, 95, 70]
        # P1 and P3 tie; the older profile keeps its place
        assert [m.id for m in matches] == [p4.id, p2.id, p1.id]


class TestCandidatePool:
    async def test_format_both_passes_filter(self, db, seed):
        both = await seed.psychologist("Both", work_formats="both")
        await seed.psychologist("Other", languages="tj", work_formats="offline")

        matches = await orchestrator(db).submit(questionnaire(format_preference="offline"))
        assert [m.id for m in matches] == [both.id]

    async def test_any_format_skips_filter(self, db, seed):
        offline = await seed.psychologist("Offline", work_formats="offline")
        await seed.psychologist("Tajik", languages="tj")

        matches = await orchestrator(db).submit(questionnaire(format_preference="any"))
        assert [m.id for m in matches] == [offline.id]

    async def test_language_is_exact_membership(self, db, seed):
        multi = await seed.psychologist("Multi", languages="tj, ru,en")
        await seed.psychologist("Rus", languages="rus")

        matches = await orchestrator(db).submit(questionnaire())
        assert [m.id for m in matches] == [multi.id]

    async def test_language_case_insensitive_and_stored_verbatim(self, db, seed):
        rus = await seed.psychologist(languages="RU, en")

        matches = await orchestrator(db).submit(questionnaire(preferred_language="Ru"))
        await db.commit()

        assert [m.id for m in matches] == [rus.id]
        [row] = await _saved(db)
        assert row.preferred_language == "Ru"

    @pytest.mark.parametrize("language", ["r_", "%", "_u", "r%"])
    async def test_language_wildcards_are_literal(self, db, seed, language):
        await seed.psychologist(languages="ru")
        pool = await profiles.get_verified_candidates(db, CandidateFilter(language=language))
        assert pool == []

    async def test_wildcard_language_falls_back_to_relaxed_pool(self, db, seed):
        rus = await seed.psychologist(languages="ru")
        matches = await orchestrator(db).submit(questionnaire(preferred_language="r_"))
        assert [m.id for m in matches] == [rus.id]

    async def test_relaxed_when_nothing_matches(self, db, seed):
        tajik = await seed.psychologist("Tajik", languages="tj", work_formats="offline")

        matches = await orchestrator(db).submit(questionnaire(preferred_language="en"))
        assert [m.id for m in matches] == [tajik.id]

    async def test_unverified_never_offered(self, db, seed):
        await seed.psychologist(is_verified=False)

        matches = await orchestrator(db).submit(questionnaire())
        await db.commit()

        assert matches == []
        [row] = await _saved(db)
        assert row.ranking_snapshot is None

    async def test_empty_directory(self, db):
        assert await orchestrator(db).submit(questionnaire(), user_id=uuid.uuid4()) == []
        assert len(await _saved(db)) == 1
