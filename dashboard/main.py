from contextlib import asynccontextmanager
from typing import Optional, Sequence

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dashboard.routers import health, metrics
from dashboard.services import MetricQueryService
from data_ingestion.ingestion_job import IngestionJob
from data_ingestion.scheduler import IngestionTicker
from storage.observation_store import ObservationStore


def create_app(
    store: ObservationStore,
    job: Optional[IngestionJob] = None,
    ticker: Optional[IngestionTicker] = None,
    max_limit: int = 1000,
    cors_origins: Sequence[str] = ("*",),
) -> FastAPI:
    """
    Build the API application.

    When a ticker is given it is started with the app and stopped
    on shutdown, so ingestion and queries share one event loop.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if ticker is not None:
            ticker.start()
        try:
            yield
        finally:
            if ticker is not None:
                await ticker.stop()

    app = FastAPI(
        title="DeAI Metrics API",
        description="Scored market observations for the charting dashboard.",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.store = store
    app.state.query_service = MetricQueryService(store, max_limit=max_limit)
    app.state.ingestion_job = job

    # CORS (dashboard is served from another origin)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "HEAD"],
        allow_headers=["*"],
    )

    app.include_router(metrics.router)
    app.include_router(health.router)

    @app.get("/")
    def root():
        return {"status": "ok", "message": "DeAI Metrics API is running"}

    return app
