from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends

from core.exceptions import StoreUnavailable
from dashboard.dependencies import get_ingestion_job, get_store
from dashboard.schemas import HealthResponse
from data_ingestion.ingestion_job import IngestionJob
from storage.observation_store import ObservationStore

router = APIRouter(prefix="/health", tags=["System Health"])


@router.get("", response_model=HealthResponse)
def get_health(
    store: ObservationStore = Depends(get_store),
    job: Optional[IngestionJob] = Depends(get_ingestion_job),
):
    """
    Store reachability and ingestion counters.
    """
    database_ok = store.health_check()
    count = None
    if database_ok:
        try:
            count = store.count()
        except StoreUnavailable:
            database_ok = False

    ingestion = job.metrics.to_dict() if job else None
    last_cycle = job.last_result.to_dict() if job and job.last_result else None

    return HealthResponse(
        status="ok" if database_ok else "degraded",
        database=database_ok,
        observation_count=count,
        ingestion=ingestion,
        last_cycle=last_cycle,
        timestamp=datetime.now(timezone.utc),
    )
