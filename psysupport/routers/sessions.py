"""
REST API for booked sessions.

POST /sessions               - book a free slot (client)
GET  /sessions/client        - caller's sessions as a client
GET  /sessions/psychologist  - caller's sessions as a psychologist
GET  /sessions/{id}          - one session, parties only
POST /sessions/{id}/cancel   - cancel (either party)
POST /sessions/{id}/confirm  - confirm a pending session (psychologist)

Sessions the caller is not a party to are reported as 404.
"""
import uuid
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from psysupport.database import get_db
from psysupport.routers.deps import current_psychologist, current_user_id
from psysupport.services import profiles
from psysupport.services.booking import BookingLedger, SessionView
from psysupport.services.profiles import PsychologistCandidate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


# ── Request / Response schemas ──────────────────────────────────────────────

class BookRequest(BaseModel):
    psychologist_id: uuid.UUID
    scheduled_at: datetime   # naive = schedule time zone
    notes: Optional[str] = Field(None, max_length=2000)


class MessageResponse(BaseModel):
    message: str


# ── Endpoints ────────────────────────────────────────────────────────────────

@router.post("", response_model=SessionView, status_code=status.HTTP_201_CREATED)
async def book_session(
    body: BookRequest,
    user_id: uuid.UUID = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    # SlotUnavailableError is mapped to 409 by the app exception handler
    view = await BookingLedger(db).book(
        client_id=user_id,
        psychologist_id=body.psychologist_id,
        scheduled_at=body.scheduled_at,
        notes=body.notes,
    )
    if view is None:
        raise HTTPException(404, detail="Client or psychologist not found")
    await db.commit()
    return view


@router.get("/client", response_model=list[SessionView])
async def client_sessions(
    user_id: uuid.UUID = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await BookingLedger(db).list_for_client(user_id)


@router.get("/psychologist", response_model=list[SessionView])
async def psychologist_sessions(
    me: PsychologistCandidate = Depends(current_psychologist),
    db: AsyncSession = Depends(get_db),
):
    return await BookingLedger(db).list_for_psychologist(me.id)


@router.get("/{session_id}", response_model=SessionView)
async def get_session(
    session_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    view = await BookingLedger(db).get_by_id(session_id)
    if view is None:
        raise HTTPException(404, detail="Session not found")

    if view.client_id != user_id:
        psychologist = await profiles.get_by_user_id(db, user_id)
        if psychologist is None or view.psychologist_id != psychologist.id:
            raise HTTPException(404, detail="Session not found")
    return view


@router.post("/{session_id}/cancel", response_model=MessageResponse)
async def cancel_session(
    session_id: uuid.UUID,
    user_id: uuid.UUID = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    ledger = BookingLedger(db)
    cancelled = await ledger.cancel(session_id, user_id)
    if not cancelled:
        # the psychologist party is identified by profile id, not user id
        psychologist = await profiles.get_by_user_id(db, user_id)
        if psychologist is not None:
            cancelled = await ledger.cancel(session_id, psychologist.id)
    if not cancelled:
        raise HTTPException(404, detail="Session not found")
    await db.commit()
    return MessageResponse(message="Session cancelled")


@router.post("/{session_id}/confirm", response_model=MessageResponse)
async def confirm_session(
    session_id: uuid.UUID,
    me: PsychologistCandidate = Depends(current_psychologist),
    db: AsyncSession = Depends(get_db),
):
    confirmed = await BookingLedger(db).confirm(session_id, me.id)
    if not confirmed:
        raise HTTPException(404, detail="Session not found")
    await db.commit()
    return MessageResponse(message="Session confirmed")
