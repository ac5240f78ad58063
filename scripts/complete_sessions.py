"""
Run one completion sweep pass: move confirmed sessions that have ended to
completed. For cron-style deployments with COMPLETION_SWEEP_INTERVAL_SECONDS=0:

    python -m scripts.complete_sessions
"""
import asyncio
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from psysupport.database import async_session, engine
from psysupport.services.sweep import run_completion_sweep


async def complete_sessions():
    try:
        completed = await run_completion_sweep(async_session)
        print(f"Completed sessions: {completed}")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(complete_sessions())
