"""
Pydantic schemas for the matching questionnaire and ranking results.
"""
import uuid
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


ANY_FORMAT = "any"


class QuestionnaireSubmit(BaseModel):
    gender: str = Field(..., min_length=1, max_length=20)
    age: int = Field(..., ge=1, le=120)
    preferred_language: str = Field(..., min_length=1, max_length=10)
    main_issue: str = Field(..., min_length=1, max_length=500)
    urgency_level: Literal["low", "medium", "high"]
    format_preference: Literal["online", "offline", "chat", "any"]
    additional_info: Optional[str] = Field(None, max_length=2000)
    guest_session_id: Optional[str] = Field(None, max_length=100)

    @field_validator("urgency_level", "format_preference", mode="before")
    @classmethod
    def _lowercase(cls, v):
        # the web client sends "Online" / "High"
        return v.strip().lower() if isinstance(v, str) else v


class MatchResult(BaseModel):
    """One ranked candidate, as produced by a ranking strategy."""
    psychologist_id: uuid.UUID = Field(
        validation_alias=AliasChoices("psychologist_id", "psychologistId", "id"),
    )
    score: int = Field(..., ge=0, le=100)
    reason: str = ""


class MatchView(BaseModel):
    """Ranked candidate enriched with profile details for the client."""
    id: uuid.UUID
    name: str
    photo_path: Optional[str] = None
    experience_years: int
    price: float
    specializations: list[str]
    match_reason: str
    match_score: int
