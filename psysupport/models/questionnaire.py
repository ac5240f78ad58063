"""
QuestionnaireResponse: one submitted matching questionnaire.

Written once on submit; the only later write is ranking_snapshot, the full
ranked list produced by whichever ranking strategy ran.
"""
import uuid
from datetime import datetime

from sqlalchemy import String, Integer, DateTime, JSON, Uuid, ForeignKey, Index, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from psysupport.database import Base


class QuestionnaireResponse(Base):
    __tablename__ = "questionnaire_responses"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )

    # --- Identity ---
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )  # NULL for guests
    guest_session_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # --- Answers ---
    gender: Mapped[str] = mapped_column(String(20), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    preferred_language: Mapped[str] = mapped_column(String(10), nullable=False)
    main_issue: Mapped[str] = mapped_column(String(500), nullable=False)
    urgency_level: Mapped[str] = mapped_column(
        String(20), nullable=False
    )  # low | medium | high
    format_preference: Mapped[str] = mapped_column(
        String(20), nullable=False
    )  # online | offline | chat | any
    additional_info: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    # --- Output ---
    ranking_snapshot: Mapped[list | None] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=True
    )  # [{psychologist_id, score, reason}, ...]

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("idx_questionnaire_responses_user", "user_id"),
        Index("idx_questionnaire_responses_guest", "guest_session_id"),
    )
    __mapper_args__ = {"eager_defaults": True}
