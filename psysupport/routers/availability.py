"""
REST API for availability windows and free slots.

GET    /availability/me                        - own weekly windows (psychologist)
GET    /availability/{psychologist_id}?date=   - free slots on a date (anonymous)
GET    /availability/{psychologist_id}/windows - weekly windows (anonymous)
PUT    /availability                           - set the window for one weekday
DELETE /availability/{availability_id}         - remove an own window
"""
import uuid
import logging
from datetime import date, time

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.ext.asyncio import AsyncSession

from psysupport.database import get_db
from psysupport.models.availability import Availability
from psysupport.routers.deps import current_psychologist
from psysupport.services import availability as availability_service
from psysupport.services.booking import BookingLedger
from psysupport.services.profiles import PsychologistCandidate
from psysupport.services.slots import TimeSlot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/availability", tags=["availability"])


# ── Request / Response schemas ──────────────────────────────────────────────

class WindowRequest(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6)   # 0 = Sunday
    start_time: time
    end_time: time
    slot_duration_minutes: int = Field(60, ge=1, le=24 * 60)

    @model_validator(mode="after")
    def _check_range(self):
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class WindowResponse(BaseModel):
    id: uuid.UUID
    psychologist_id: uuid.UUID
    day_of_week: int
    start_time: time
    end_time: time
    slot_duration_minutes: int

    @classmethod
    def from_orm(cls, w: Availability) -> "WindowResponse":
        return cls(
            id=w.id,
            psychologist_id=w.psychologist_id,
            day_of_week=w.day_of_week,
            start_time=w.start_time,
            end_time=w.end_time,
            slot_duration_minutes=w.slot_duration_minutes,
        )


class MessageResponse(BaseModel):
    message: str


# ── Endpoints ────────────────────────────────────────────────────────────────

@router.get("/me", response_model=list[WindowResponse])
async def my_windows(
    me: PsychologistCandidate = Depends(current_psychologist),
    db: AsyncSession = Depends(get_db),
):
    windows = await availability_service.list_windows(db, me.id)
    return [WindowResponse.from_orm(w) for w in windows]


@router.get("/{psychologist_id}", response_model=list[TimeSlot])
async def free_slots(
    psychologist_id: uuid.UUID,
    on: date = Query(..., alias="date"),
    db: AsyncSession = Depends(get_db),
):
    return await BookingLedger(db).compute_available_slots(psychologist_id, on)


@router.get("/{psychologist_id}/windows", response_model=list[WindowResponse])
async def psychologist_windows(psychologist_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    windows = await availability_service.list_windows(db, psychologist_id)
    return [WindowResponse.from_orm(w) for w in windows]


@router.put("", response_model=WindowResponse)
async def set_window(
    body: WindowRequest,
    me: PsychologistCandidate = Depends(current_psychologist),
    db: AsyncSession = Depends(get_db),
):
    window = await availability_service.upsert_window(
        db,
        me.id,
        day_of_week=body.day_of_week,
        start_time=body.start_time,
        end_time=body.end_time,
        slot_duration_minutes=body.slot_duration_minutes,
    )
    response = WindowResponse.from_orm(window)
    await db.commit()
    return response


@router.delete("/{availability_id}", response_model=MessageResponse)
async def delete_window(
    availability_id: uuid.UUID,
    me: PsychologistCandidate = Depends(current_psychologist),
    db: AsyncSession = Depends(get_db),
):
    removed = await availability_service.remove_window(db, availability_id, me.id)
    if not removed:
        raise HTTPException(404, detail="Availability not found")
    await db.commit()
    return MessageResponse(message="Availability removed")
