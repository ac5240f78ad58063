"""Booking ledger: owns the Session lifecycle.

Free slots are always recomputed from the availability window and the
non-cancelled sessions of that day; a booking is accepted only if its start
time is one of them. If a concurrent booking commits the same slot between
the check and the insert, the partial unique index on sessions rejects our
insert and the booking fails as SlotUnavailable.

All DB work uses the injected AsyncSession; the caller must commit.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from psysupport.config import settings
from psysupport.exceptions import InvalidSessionTransitionError, SlotUnavailableError
from psysupport.models.psychologist import Psychologist
from psysupport.models.session import Session, SessionStatus
from psysupport.models.user import User, display_name
from psysupport.services import profiles
from psysupport.services.availability import get_window_for_day
from psysupport.services.session_state import can_transition, is_terminal
from psysupport.services.slots import TimeSlot, day_of_week, generate_free_slots

logger = logging.getLogger(__name__)


class SessionView(BaseModel):
    """Session enriched with both parties' display names."""
    id: uuid.UUID
    client_id: uuid.UUID
    client_name: Optional[str] = None
    psychologist_id: uuid.UUID
    psychologist_name: Optional[str] = None
    scheduled_at: datetime
    duration_minutes: int
    status: SessionStatus
    meeting_link: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


def to_schedule_time(value: datetime) -> datetime:
    """Normalise to a naive wall-clock datetime in the schedule time zone."""
    if value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(settings.SCHEDULE_TIMEZONE)).replace(tzinfo=None)


def schedule_now() -> datetime:
    return datetime.now(ZoneInfo(settings.SCHEDULE_TIMEZONE)).replace(tzinfo=None)


class BookingLedger:
    """Stateless over the injected session, one instance per request is fine."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------

    async def compute_available_slots(self, psychologist_id: uuid.UUID, on: date) -> list[TimeSlot]:
        """Free slots of a psychologist on a calendar date (empty if no window)."""
        window = await get_window_for_day(self.db, psychologist_id, day_of_week(on))
        if window is None:
            return []
        booked = await self._booked_times(psychologist_id, on)
        return generate_free_slots(window, booked)

    async def _booked_times(self, psychologist_id: uuid.UUID, on: date) -> set[time]:
        day_start = datetime.combine(on, time.min)
        result = await self.db.execute(
            select(Session.scheduled_at).where(
                Session.psychologist_id == psychologist_id,
                Session.scheduled_at >= day_start,
                Session.scheduled_at < day_start + timedelta(days=1),
                Session.status != SessionStatus.CANCELLED.value,
            )
        )
        return {scheduled_at.time() for scheduled_at in result.scalars().all()}

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def book(
        self,
        client_id: uuid.UUID,
        psychologist_id: uuid.UUID,
        scheduled_at: datetime,
        notes: str | None = None,
    ) -> SessionView | None:
        """Create a pending session in a free slot.

        Returns None if the client or the psychologist does not exist.
        Raises SlotUnavailableError if the time is not a free slot start,
        including when a concurrent booking took it first.
        """
        psychologist = await profiles.get_psychologist(self.db, psychologist_id)
        if psychologist is None:
            return None
        if await self.db.get(User, client_id) is None:
            logger.info("[booking] Rejected unknown client=%s", client_id)
            return None

        scheduled_at = to_schedule_time(scheduled_at)
        window = await get_window_for_day(self.db, psychologist_id, day_of_week(scheduled_at.date()))
        booked = await self._booked_times(psychologist_id, scheduled_at.date())
        free = generate_free_slots(window, booked)

        if not any(slot.start_time == scheduled_at.time() for slot in free):
            logger.info(
                "[booking] Rejected psychologist=%s at=%s: slot not free",
                psychologist_id, scheduled_at,
            )
            raise SlotUnavailableError(psychologist_id, scheduled_at)

        session = Session(
            client_id=client_id,
            psychologist_id=psychologist_id,
            scheduled_at=scheduled_at,
            duration_minutes=window.slot_duration_minutes,
            status=SessionStatus.PENDING.value,
            meeting_link=psychologist.meeting_link,
            notes=notes,
        )
        self.db.add(session)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            if scheduled_at.time() in await self._booked_times(psychologist_id, scheduled_at.date()):
                logger.warning(
                    "[booking] Lost race for psychologist=%s at=%s",
                    psychologist_id, scheduled_at,
                )
                raise SlotUnavailableError(psychologist_id, scheduled_at) from None
            raise

        logger.info(
            "[booking] Booked session %s client=%s psychologist=%s at=%s",
            session.id, client_id, psychologist_id, scheduled_at,
        )
        return await self.get_by_id(session.id)

    async def cancel(self, session_id: uuid.UUID, requester_id: uuid.UUID) -> bool:
        """Cancel on behalf of either party.

        False if the session is missing or the requester is not a party.
        Cancelling a cancelled or completed session is a successful no-op.
        """
        session = await self._load(session_id)
        if session is None:
            return False
        if requester_id not in (session.client_id, session.psychologist_id):
            return False

        if is_terminal(session.status):
            return True

        session.status = SessionStatus.CANCELLED.value
        await self.db.flush()
        logger.info("[booking] Session %s cancelled by %s", session_id, requester_id)
        return True

    async def confirm(self, session_id: uuid.UUID, psychologist_id: uuid.UUID) -> bool:
        """Confirm a pending session of this psychologist.

        False if no session with that id belongs to the psychologist.
        Raises InvalidSessionTransitionError unless the session is pending.
        """
        result = await self.db.execute(
            select(Session).where(
                Session.id == session_id,
                Session.psychologist_id == psychologist_id,
            )
        )
        session = result.scalar_one_or_none()
        if session is None:
            return False

        if not can_transition(session.status, SessionStatus.CONFIRMED):
            raise InvalidSessionTransitionError(session_id, session.status, SessionStatus.CONFIRMED.value)

        session.status = SessionStatus.CONFIRMED.value
        await self.db.flush()
        logger.info("[booking] Session %s confirmed", session_id)
        return True

    async def complete_elapsed(self, now: datetime | None = None) -> int:
        """Move confirmed sessions that have ended by `now` to completed.

        `now` is wall-clock in the schedule time zone (defaults to the current
        time there). Returns the number of sessions completed.
        """
        now = to_schedule_time(now) if now is not None else schedule_now()
        result = await self.db.execute(
            select(Session).where(
                Session.status == SessionStatus.CONFIRMED.value,
                Session.scheduled_at <= now,
            )
        )

        completed = 0
        for session in result.scalars().all():
            if session.scheduled_at + timedelta(minutes=session.duration_minutes) > now:
                continue
            session.status = SessionStatus.COMPLETED.value
            session.completed_at = datetime.now(timezone.utc)
            completed += 1

        if completed:
            await self.db.flush()
        return completed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_for_client(self, client_id: uuid.UUID) -> list[SessionView]:
        return await self._list_views(Session.client_id == client_id)

    async def list_for_psychologist(self, psychologist_id: uuid.UUID) -> list[SessionView]:
        return await self._list_views(Session.psychologist_id == psychologist_id)

    async def get_by_id(self, session_id: uuid.UUID) -> SessionView | None:
        """Enriched session or None. Party checks are the caller's job."""
        views = await self._list_views(Session.id == session_id)
        return views[0] if views else None

    async def _load(self, session_id: uuid.UUID) -> Session | None:
        result = await self.db.execute(select(Session).where(Session.id == session_id))
        return result.scalar_one_or_none()

    async def _list_views(self, condition) -> list[SessionView]:
        client = aliased(User)
        psychologist_user = aliased(User)
        stmt = (
            select(
                Session,
                client.first_name,
                client.last_name,
                psychologist_user.first_name,
                psychologist_user.last_name,
            )
            .outerjoin(client, client.id == Session.client_id)
            .outerjoin(Psychologist, Psychologist.id == Session.psychologist_id)
            .outerjoin(psychologist_user, psychologist_user.id == Psychologist.user_id)
            .where(condition)
            .order_by(Session.scheduled_at.desc())
        )
        result = await self.db.execute(stmt)
        return [
            _to_view(s, display_name(c_first, c_last), display_name(p_first, p_last))
            for s, c_first, c_last, p_first, p_last in result.all()
        ]


def _to_view(s: Session, client_name: str, psychologist_name: str) -> SessionView:
    return SessionView(
        id=s.id,
        client_id=s.client_id,
        client_name=client_name or None,
        psychologist_id=s.psychologist_id,
        psychologist_name=psychologist_name or None,
        scheduled_at=s.scheduled_at,
        duration_minutes=s.duration_minutes,
        status=SessionStatus(s.status),
        meeting_link=s.meeting_link,
        notes=s.notes,
        created_at=s.created_at,
    )
