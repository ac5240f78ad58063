"""
Profile directory: read-only access to psychologist profiles.

Profiles are created and edited by the admin/profile service; this module
only reads them.
"""
import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import String, func, literal, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from psysupport.models.psychologist import Psychologist, Specialization
from psysupport.models.user import display_name


BOTH_FORMATS = "both"


# ── Read projections ────────────────────────────────────────────────────────

class SpecializationItem(BaseModel):
    id: int
    key: str
    name: str


class PsychologistCandidate(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    photo_path: Optional[str] = None
    experience_years: int = 0
    languages: list[str] = []
    work_formats: list[str] = []
    specializations: list[SpecializationItem] = []
    price_per_session: Decimal = Decimal("0")
    meeting_link: Optional[str] = None
    is_verified: bool = False

    @property
    def display_name(self) -> str:
        return display_name(self.first_name, self.last_name)

    @property
    def specialization_keys(self) -> list[str]:
        return [s.key for s in self.specializations]

    @classmethod
    def from_orm(cls, p: Psychologist) -> "PsychologistCandidate":
        return cls(
            id=p.id,
            user_id=p.user_id,
            first_name=p.user.first_name if p.user else None,
            last_name=p.user.last_name if p.user else None,
            photo_path=p.photo_path,
            experience_years=p.experience_years,
            languages=p.language_list,
            work_formats=p.work_format_list,
            specializations=[
                SpecializationItem(id=s.id, key=s.key, name=s.name_ru)
                for s in p.specializations
            ],
            price_per_session=p.price_per_session,
            meeting_link=p.meeting_link,
            is_verified=p.is_verified,
        )


class CandidateFilter(BaseModel):
    language: Optional[str] = None
    work_format: Optional[str] = None
    max_price: Optional[Decimal] = None
    specialization_ids: Optional[list[int]] = None
    only_verified: bool = True
    page: int = 1
    page_size: int = 10


# ── Queries ─────────────────────────────────────────────────────────────────

def _like_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _csv_contains(column, value: str):
    """Exact membership test on a comma-separated column (case/space-insensitive)."""
    normalised = func.replace(func.lower(column), " ", "", type_=String)
    item = _like_escape(value.strip().lower())
    return (literal(",") + normalised + literal(",")).like(f"%,{item},%", escape="\\")


async def get_verified_candidates(db: AsyncSession, flt: CandidateFilter) -> list[PsychologistCandidate]:
    """One page of psychologists matching the filter, oldest profiles first."""
    stmt = select(Psychologist)

    if flt.only_verified:
        stmt = stmt.where(Psychologist.is_verified.is_(True))
    if flt.language:
        stmt = stmt.where(_csv_contains(Psychologist.languages, flt.language))
    if flt.work_format:
        stmt = stmt.where(or_(
            _csv_contains(Psychologist.work_formats, flt.work_format),
            _csv_contains(Psychologist.work_formats, BOTH_FORMATS),
        ))
    if flt.max_price is not None:
        stmt = stmt.where(Psychologist.price_per_session <= flt.max_price)
    if flt.specialization_ids:
        stmt = stmt.where(
            Psychologist.specializations.any(Specialization.id.in_(flt.specialization_ids))
        )

    page = max(flt.page, 1)
    stmt = (
        stmt.order_by(Psychologist.created_at, Psychologist.id)
        .offset((page - 1) * flt.page_size)
        .limit(flt.page_size)
    )

    result = await db.execute(stmt)
    return [PsychologistCandidate.from_orm(p) for p in result.scalars().all()]


async def get_psychologist(db: AsyncSession, psychologist_id: uuid.UUID) -> PsychologistCandidate | None:
    result = await db.execute(select(Psychologist).where(Psychologist.id == psychologist_id))
    p = result.scalar_one_or_none()
    return PsychologistCandidate.from_orm(p) if p else None


async def get_by_user_id(db: AsyncSession, user_id: uuid.UUID) -> PsychologistCandidate | None:
    """Resolve the psychologist profile owned by a user account."""
    result = await db.execute(select(Psychologist).where(Psychologist.user_id == user_id))
    p = result.scalar_one_or_none()
    return PsychologistCandidate.from_orm(p) if p else None


async def get_meeting_link(db: AsyncSession, psychologist_id: uuid.UUID) -> str | None:
    result = await db.execute(
        select(Psychologist.meeting_link).where(Psychologist.id == psychologist_id)
    )
    return result.scalar_one_or_none()
