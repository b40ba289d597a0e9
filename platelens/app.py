"""FastAPI application entry point.

Run with:
    uvicorn platelens.app:app --port 8080
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from dotenv import load_dotenv
from fastapi import FastAPI

from platelens import __version__
from platelens.api.scan_jobs import router as scan_router
from platelens.application.jobs.stale_sweep import StaleJobSweeper
from platelens.infrastructure.config import (
    get_log_level,
    get_stale_job_lease_seconds,
    get_stale_job_sweep_interval_seconds,
    is_stale_job_sweep_enabled,
)
from platelens.infrastructure.scheduler import SchedulerManager
from platelens.pipeline import EnrichmentPipeline, build_pipeline

load_dotenv()

logging.basicConfig(
    level=getattr(logging, get_log_level(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

logger = logging.getLogger("startup")


def create_app(pipeline: Optional[EnrichmentPipeline] = None) -> FastAPI:
    """
    Build the application.

    Args:
        pipeline: Pre-built pipeline (tests); built from env at startup otherwise
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        active = pipeline or build_pipeline()
        app.state.pipeline = active
        await active.start()

        scheduler: Optional[SchedulerManager] = None
        if is_stale_job_sweep_enabled():
            sweeper = StaleJobSweeper(active.store, lease_seconds=get_stale_job_lease_seconds())
            scheduler = SchedulerManager()
            scheduler.initialize(sweeper.run, interval_seconds=get_stale_job_sweep_interval_seconds())
            scheduler.start()

        logger.info(
            "lifespan.ready",
            extra={"version": __version__, "stale_sweep": scheduler is not None},
        )
        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.shutdown(wait=False)
            await active.stop()
            logger.info("lifespan.shutdown")

    application = FastAPI(title="PlateLens Enrichment", version=__version__, lifespan=lifespan)
    application.include_router(scan_router)

    @application.get("/health")
    async def health() -> Dict[str, Any]:
        active: Optional[EnrichmentPipeline] = getattr(application.state, "pipeline", None)
        return {
            "status": "ok",
            "version": __version__,
            "queue_running": bool(active and active.queue.running),
            "pending_events": active.queue.pending() if active else 0,
        }

    return application


app = create_app()
