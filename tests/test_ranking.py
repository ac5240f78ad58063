"""Tests for the ranking strategies (no DB, fake Anthropic client)."""
import asyncio
import json
import uuid
from decimal import Decimal
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from psysupport.services.matching.orchestrator import build_match_views
from psysupport.services.matching.ranking import (
    FALLBACK_REASON,
    LlmRanker,
    RankingProvider,
    _parse_json,
    fallback_score,
    rank_fallback,
)
from psysupport.services.matching.schemas import MatchResult, QuestionnaireSubmit
from psysupport.services.profiles import PsychologistCandidate, SpecializationItem


def make_questionnaire(**overrides) -> QuestionnaireSubmit:
    data = {
        "gender": "female",
        "age": 29,
        "preferred_language": "ru",
        "main_issue": "Anxiety",
        "urgency_level": "high",
        "format_preference": "online",
    }
    data.update(overrides)
    return QuestionnaireSubmit(**data)


def make_candidate(
    name: str = "Dilnoza",
    *,
    languages=("ru",),
    work_formats=("online",),
    keys=("anxiety",),
    experience_years: int = 7,
) -> PsychologistCandidate:
    return PsychologistCandidate(
        id=uuid.uuid4(),
        user_id=uuid.uuid4(),
        first_name=name,
        last_name="Test",
        experience_years=experience_years,
        languages=list(languages),
        work_formats=list(work_formats),
        specializations=[
            SpecializationItem(id=i + 1, key=k, name=k.title()) for i, k in enumerate(keys)
        ],
        price_per_session=Decimal("100.00"),
        is_verified=True,
    )


class FakeMessages:
    def __init__(self, text=None, exc=None, delay=0.0):
        self.text = text
        self.exc = exc
        self.delay = delay
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=self.text)])


def fake_llm(text=None, exc=None, delay=0.0, timeout=1.0) -> tuple[LlmRanker, FakeMessages]:
    messages = FakeMessages(text=text, exc=exc, delay=delay)
    client = SimpleNamespace(messages=messages)
    return LlmRanker(client, model="test-model", timeout_seconds=timeout), messages


# ---------------------------------------------------------------------------
# Questionnaire validation
# ---------------------------------------------------------------------------

class TestQuestionnaire:
    def test_values_normalised(self):
        q = make_questionnaire(urgency_level="High", format_preference="Online", preferred_language="RU")
        assert q.urgency_level == "high"
        assert q.format_preference == "online"
        assert q.preferred_language == "RU"

    @pytest.mark.parametrize("field,value", [
        ("age", 0),
        ("age", 121),
        ("urgency_level", "urgent"),
        ("format_preference", "phone"),
        ("main_issue", ""),
    ])
    def test_invalid(self, field, value):
        with pytest.raises(ValidationError):
            make_questionnaire(**{field: value})


# ---------------------------------------------------------------------------
# Fallback scoring
# ---------------------------------------------------------------------------

class TestFallbackScore:
    def test_full_match_clamped_to_100(self):
        assert fallback_score(make_questionnaire(), make_candidate()) == 100

    def test_base_score_only(self):
        q = make_questionnaire(preferred_language="en", format_preference="offline",
                               main_issue="sleep", urgency_level="low")
        assert fallback_score(q, make_candidate()) == 50

    def test_both_format_counts_as_match(self):
        q = make_questionnaire(preferred_language="en", format_preference="offline",
                               main_issue="sleep", urgency_level="low")
        assert fallback_score(q, make_candidate(work_formats=("both",))) == 65

    def test_language_case_insensitive(self):
        q = make_questionnaire(format_preference="offline", main_issue="sleep", urgency_level="low")
        assert fallback_score(q, make_candidate(languages=("RU",))) == 70
        q = make_questionnaire(preferred_language="RU", format_preference="offline", main_issue="sleep", urgency_level="low")
        assert fallback_score(q, make_candidate(languages=("ru",))) == 70

    def test_issue_contained_in_key(self):
        q = make_questionnaire(preferred_language="en", format_preference="offline",
                               main_issue="self", urgency_level="low")
        assert fallback_score(q, make_candidate(keys=("self_esteem",))) == 75

    def test_urgency_needs_experience(self):
        q = make_questionnaire(preferred_language="en", format_preference="offline",
                               main_issue="sleep")
        assert fallback_score(q, make_candidate(experience_years=4)) == 50
        assert fallback_score(q, make_candidate(experience_years=5)) == 60


class TestRankFallback:
    def test_top_three_descending(self):
        q = make_questionnaire(urgency_level="low")
        weak = make_candidate("Weak", languages=("tj",), work_formats=("offline",), keys=())
        best = make_candidate("Best")
        mid = make_candidate("Mid", keys=())
        low = make_candidate("Low", languages=("tj",), keys=())

        ranked = rank_fallback(q, [weak, best, mid, low])
        assert [m.psychologist_id for m in ranked] == [best.id, mid.id, low.id]
        assert [m.score for m in ranked] == [100, 85, 65]
        assert all(m.reason == FALLBACK_REASON for m in ranked)

    def test_ties_keep_pool_order(self):
        q = make_questionnaire()
        pool = [make_candidate(str(i)) for i in range(5)]
        ranked = rank_fallback(q, pool)
        assert [m.psychologist_id for m in ranked] == [c.id for c in pool[:3]]

    def test_deterministic(self):
        q = make_questionnaire()
        pool = [make_candidate(str(i), experience_years=i) for i in range(6)]
        assert rank_fallback(q, pool) == rank_fallback(q, pool)


# ---------------------------------------------------------------------------
# LLM strategy
# ---------------------------------------------------------------------------

class TestLlmRanker:
    async def test_uses_llm_answer(self):
        a, b = make_candidate("A"), make_candidate("B")
        answer = json.dumps([
            {"psychologist_id": str(b.id), "score": 91, "reason": "Speaks the language"},
            {"psychologist_id": str(a.id), "score": 70, "reason": "Experienced"},
        ])
        llm, messages = fake_llm(text=f"```json\n{answer}\n```")
        ranked = await RankingProvider(llm).rank(make_questionnaire(), [a, b])

        assert [m.psychologist_id for m in ranked] == [b.id, a.id]
        assert ranked[0].reason == "Speaks the language"
        assert messages.calls[0]["model"] == "test-model"
        assert str(a.id) in messages.calls[0]["messages"][0]["content"]

    async def test_unknown_ids_dropped(self):
        a = make_candidate("A")
        answer = json.dumps([
            {"psychologist_id": str(uuid.uuid4()), "score": 99, "reason": "ghost"},
            {"psychologist_id": str(a.id), "score": 80, "reason": "real"},
        ])
        llm, _ = fake_llm(text=answer)
        ranked = await llm.rank(make_questionnaire(), [a])
        assert [m.psychologist_id for m in ranked] == [a.id]

    @pytest.mark.parametrize("text", [
        "",
        "I think the best choice is Dilnoza.",
        '[{"psychologist_id": "not-a-uuid", "score": 80}]',
        '[{"psychologist_id": "%s", "score": 180, "reason": "x"}]' % uuid.uuid4(),
        "[]",
    ])
    async def test_unusable_answer_returns_none(self, text):
        llm, _ = fake_llm(text=text)
        assert await llm.rank(make_questionnaire(), [make_candidate()]) is None

    async def test_ids_outside_pool_return_none(self):
        answer = json.dumps([{"psychologist_id": str(uuid.uuid4()), "score": 90, "reason": "x"}])
        llm, _ = fake_llm(text=answer)
        assert await llm.rank(make_questionnaire(), [make_candidate()]) is None

    async def test_api_error_returns_none(self):
        llm, _ = fake_llm(exc=RuntimeError("503 overloaded"))
        assert await llm.rank(make_questionnaire(), [make_candidate()]) is None

    async def test_timeout_returns_none(self):
        llm, _ = fake_llm(text="[]", delay=1.0, timeout=0.01)
        assert await llm.rank(make_questionnaire(), [make_candidate()]) is None


class TestRankingProvider:
    async def test_no_llm_uses_fallback(self):
        pool = [make_candidate()]
        ranked = await RankingProvider().rank(make_questionnaire(), pool)
        assert ranked[0].reason == FALLBACK_REASON
        assert ranked[0].score == 100

    async def test_llm_failure_falls_back(self):
        llm, messages = fake_llm(exc=RuntimeError("boom"))
        pool = [make_candidate()]
        ranked = await RankingProvider(llm).rank(make_questionnaire(), pool)
        assert len(messages.calls) == 1
        assert ranked == rank_fallback(make_questionnaire(), pool)

    async def test_empty_pool(self):
        llm, messages = fake_llm(text="[]")
        assert await RankingProvider(llm).rank(make_questionnaire(), []) == []
        assert messages.calls == []


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def test_parse_json_strips_fences():
    assert _parse_json('```json\n[{"a": 1}]\n```') == [{"a": 1}]
    assert _parse_json('```\n{"a": 1}\n```') == {"a": 1}


def test_match_views_skip_unknown_and_sort_stably():
    a, b, c, d = (make_candidate(n) for n in "ABCD")
    ranked = [
        MatchResult(psychologist_id=a.id, score=70, reason="a"),
        MatchResult(psychologist_id=uuid.uuid4(), score=99, reason="ghost"),
        MatchResult(psychologist_id=b.id, score=90, reason="b"),
        MatchResult(psychologist_id=c.id, score=70, reason="c"),
        MatchResult(psychologist_id=d.id, score=95, reason="d"),
    ]
    views = build_match_views(ranked, [a, b, c, d])
    assert [v.id for v in views] == [b.id, a.id, c.id]
    assert views[0].name == "B Test"
    assert views[0].match_score == 90
    assert views[0].specializations == ["Anxiety"]
    assert views[0].price == 100.0
