"""
Psychological Support Backend: Main Application

Booking against weekly availability, and questionnaire-based matching.
"""
import asyncio
import logging
from contextlib import asynccontextmanager, suppress

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from psysupport.config import settings
from psysupport.database import engine, async_session, Base
from psysupport.exceptions import PsySupportError
from psysupport.routers.availability import router as availability_router
from psysupport.routers.matching import router as matching_router
from psysupport.routers.sessions import router as sessions_router
from psysupport.services.sweep import completion_sweep_loop

VERSION = "0.1.0"

# --- Logging ---
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)

# --- Sentry ---
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        traces_sample_rate=0.1,
        environment="development" if settings.DEBUG else "production",
    )
    logger.info("Sentry initialized")


# --- Lifespan: create tables, run the completion sweep ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Psychological Support Backend...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured.")

    sweep_task = None
    if settings.COMPLETION_SWEEP_INTERVAL_SECONDS > 0:
        sweep_task = asyncio.create_task(
            completion_sweep_loop(async_session, settings.COMPLETION_SWEEP_INTERVAL_SECONDS)
        )

    yield

    logger.info("Shutting down Psychological Support Backend...")
    if sweep_task is not None:
        sweep_task.cancel()
        with suppress(asyncio.CancelledError):
            await sweep_task
    await engine.dispose()


# --- App ---
app = FastAPI(
    title="Psychological Support Backend",
    version=VERSION,
    lifespan=lifespan,
)


@app.exception_handler(PsySupportError)
async def psysupport_exception_handler(request: Request, exc: PsySupportError):
    logger.warning(
        "[api] %s on %s: %s %s", exc.code, request.url.path, exc.message, exc.details
    )
    return JSONResponse(
        status_code=409,
        content={
            "error": exc.code,
            "message": exc.message,
            "details": exc.details,
        },
    )


# --- Health check ---
@app.get("/health")
async def health():
    return {"status": "ok", "version": VERSION}


# --- API routers ---
app.include_router(availability_router)
app.include_router(sessions_router)
app.include_router(matching_router)
