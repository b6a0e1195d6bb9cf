import asyncio

from fastapi import FastAPI
from contextlib import asynccontextmanager
from app.core.config import settings
from app.core.logging import logger, setup_logging
from app.api.v1.endpoints import survey
from app.utils.memory import survey_session_store


async def sweep_sessions(interval_seconds: float):
    while True:
        await asyncio.sleep(interval_seconds)
        expired = survey_session_store.sweep()
        if expired:
            logger.info("Expired sessions removed", count=len(expired))


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Starting session sweeper", interval_seconds=settings.SESSION_SWEEP_INTERVAL_SECONDS)
    sweeper = asyncio.create_task(sweep_sessions(settings.SESSION_SWEEP_INTERVAL_SECONDS))
    try:
        yield
    finally:
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass
        logger.info("Session sweeper stopped")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    lifespan=lifespan
)
app.include_router(survey.router, prefix=f"{settings.API_V1_STR}/survey", tags=["Survey Builder"])


@app.get("/")
async def root():
    return {"message": "Survey Builder Agent API", "status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
