"""
Availability store: recurring weekly windows, one per (psychologist, weekday).
db.commit() is the caller's responsibility.
"""
import logging
import uuid
from datetime import time

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from psysupport.models.availability import Availability

logger = logging.getLogger(__name__)

DEFAULT_SLOT_DURATION_MINUTES = 60


async def upsert_window(
    db: AsyncSession,
    psychologist_id: uuid.UUID,
    *,
    day_of_week: int,
    start_time: time,
    end_time: time,
    slot_duration_minutes: int = DEFAULT_SLOT_DURATION_MINUTES,
) -> Availability:
    """
    Set the window for one weekday.
    An existing window for that day is updated in place and keeps its id.
    """
    existing = await get_window_for_day(db, psychologist_id, day_of_week)

    if existing is not None:
        existing.start_time = start_time
        existing.end_time = end_time
        existing.slot_duration_minutes = slot_duration_minutes
        await db.flush()
        logger.info(
            "[availability] Replaced window %s psychologist=%s day=%s",
            existing.id, psychologist_id, day_of_week,
        )
        return existing

    window = Availability(
        psychologist_id=psychologist_id,
        day_of_week=day_of_week,
        start_time=start_time,
        end_time=end_time,
        slot_duration_minutes=slot_duration_minutes,
    )
    db.add(window)
    await db.flush()
    logger.info(
        "[availability] Created window %s psychologist=%s day=%s",
        window.id, psychologist_id, day_of_week,
    )
    return window


async def remove_window(
    db: AsyncSession,
    availability_id: uuid.UUID,
    psychologist_id: uuid.UUID,
) -> bool:
    """
    Delete a window owned by the psychologist.
    Returns False when no such row exists for that owner.
    """
    result = await db.execute(
        select(Availability).where(
            Availability.id == availability_id,
            Availability.psychologist_id == psychologist_id,
        )
    )
    window = result.scalar_one_or_none()
    if window is None:
        return False

    await db.delete(window)
    await db.flush()
    return True


async def list_windows(db: AsyncSession, psychologist_id: uuid.UUID) -> list[Availability]:
    """All windows of a psychologist, ordered by weekday then start time."""
    result = await db.execute(
        select(Availability)
        .where(Availability.psychologist_id == psychologist_id)
        .order_by(Availability.day_of_week, Availability.start_time)
    )
    return list(result.scalars().all())


async def get_window_for_day(
    db: AsyncSession,
    psychologist_id: uuid.UUID,
    day_of_week: int,
) -> Availability | None:
    result = await db.execute(
        select(Availability).where(
            Availability.psychologist_id == psychologist_id,
            Availability.day_of_week == day_of_week,
        )
    )
    return result.scalar_one_or_none()
