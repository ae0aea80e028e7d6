import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from midgard_history.api import router as api_router
from midgard_history.core.config import settings
from midgard_history.core.scheduler import start_scheduler
from midgard_history.workers.history_ingestor import build_ingestors

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:  # pragma: no cover - lifecycle wiring
    scheduler = None
    app.state.ingestors = []

    if settings.enable_scheduler:
        app.state.ingestors = build_ingestors()
        scheduler = start_scheduler(app.state.ingestors)

    yield

    if scheduler and scheduler.running:
        # In-flight fetches run to completion on their worker threads.
        scheduler.shutdown(wait=False)
        logger.info("scheduler stopped")


def create_app() -> FastAPI:
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    application = FastAPI(title="Midgard History API", lifespan=lifespan)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    application.include_router(api_router)

    @application.get("/health")
    async def health():
        return {"status": "ok"}

    return application


app = create_app()
