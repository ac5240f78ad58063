"""
Psychologist profile and specialization catalogue.

Profiles are managed by the admin/profile service; this service only reads
them (candidate pool, meeting links, display names).
"""
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Integer, Boolean, Numeric, DateTime, Uuid, ForeignKey, Table, Column, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from psysupport.database import Base
from psysupport.models.user import User


psychologist_specializations = Table(
    "psychologist_specializations",
    Base.metadata,
    Column(
        "psychologist_id",
        Uuid,
        ForeignKey("psychologists.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "specialization_id",
        Integer,
        ForeignKey("specializations.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Specialization(Base):
    __tablename__ = "specializations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    key: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False
    )  # anxiety | depression | burnout | ...
    name_ru: Mapped[str] = mapped_column(String(100), nullable=False)
    name_tj: Mapped[str] = mapped_column(String(100), nullable=False)


class Psychologist(Base):
    __tablename__ = "psychologists"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    photo_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    experience_years: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    education: Mapped[str | None] = mapped_column(String(500), nullable=True)
    approach_description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    languages: Mapped[str] = mapped_column(
        String(50), nullable=False, default="ru"
    )  # comma-separated: "ru,tj,en"
    work_formats: Mapped[str] = mapped_column(
        String(50), nullable=False, default="online"
    )  # comma-separated: online | offline | both
    price_per_session: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )
    meeting_link: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    user: Mapped[User] = relationship(lazy="joined")
    specializations: Mapped[list[Specialization]] = relationship(
        secondary=psychologist_specializations,
        lazy="selectin",
        order_by=Specialization.id,
    )

    @property
    def language_list(self) -> list[str]:
        return split_csv(self.languages)

    @property
    def work_format_list(self) -> list[str]:
        return split_csv(self.work_formats)


def split_csv(value: str | None) -> list[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]
