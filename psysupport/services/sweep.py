"""
Completion sweep: background task that closes finished sessions.

Every COMPLETION_SWEEP_INTERVAL_SECONDS the sweep marks confirmed sessions
whose scheduled_at + duration has passed as completed. Pending sessions are
never completed.
"""
import asyncio
import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from psysupport.services.booking import BookingLedger

logger = logging.getLogger(__name__)


async def run_completion_sweep(
    session_factory: async_sessionmaker[AsyncSession],
    now: datetime | None = None,
) -> int:
    """Run one sweep pass in its own transaction. Returns sessions completed."""
    async with session_factory() as db:
        completed = await BookingLedger(db).complete_elapsed(now)
        await db.commit()
    if completed:
        logger.info("[sweep] Completed %d elapsed session(s)", completed)
    return completed


async def completion_sweep_loop(
    session_factory: async_sessionmaker[AsyncSession],
    interval_seconds: int,
) -> None:
    """Repeat run_completion_sweep until cancelled. Pass errors are logged, not raised."""
    logger.info("[sweep] Started, interval=%ss", interval_seconds)
    while True:
        try:
            await run_completion_sweep(session_factory)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("[sweep] Pass failed")
        await asyncio.sleep(interval_seconds)
