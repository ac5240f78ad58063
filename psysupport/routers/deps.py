"""
Request identity.

Authentication happens upstream; the gateway forwards the caller's user id in
the X-User-Id header. Missing or malformed header → 401 on protected routes.
"""
import uuid
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from psysupport.database import get_db
from psysupport.services import profiles
from psysupport.services.profiles import PsychologistCandidate

USER_ID_HEADER = "X-User-Id"


def _parse_user_id(raw: Optional[str]) -> Optional[uuid.UUID]:
    if not raw:
        return None
    try:
        return uuid.UUID(raw)
    except ValueError:
        return None


async def optional_user_id(
    x_user_id: Optional[str] = Header(None, alias=USER_ID_HEADER),
) -> Optional[uuid.UUID]:
    return _parse_user_id(x_user_id)


async def current_user_id(
    x_user_id: Optional[str] = Header(None, alias=USER_ID_HEADER),
) -> uuid.UUID:
    user_id = _parse_user_id(x_user_id)
    if user_id is None:
        raise HTTPException(401, detail="Missing or invalid X-User-Id header")
    return user_id


async def current_psychologist(
    user_id: uuid.UUID = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
) -> PsychologistCandidate:
    """The psychologist profile owned by the caller, or 404."""
    psychologist = await profiles.get_by_user_id(db, user_id)
    if psychologist is None:
        raise HTTPException(404, detail="Psychologist profile not found")
    return psychologist
