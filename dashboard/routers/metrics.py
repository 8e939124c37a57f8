import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from core.exceptions import CallerInputInvalid, StoreUnavailable
from dashboard.dependencies import get_query_service
from dashboard.schemas import ObservationResponse
from dashboard.services import DEFAULT_LIMIT, MetricQueryService

router = APIRouter(prefix="/metrics", tags=["Metrics"])
logger = logging.getLogger("dashboard.metrics")


@router.get("", response_model=List[ObservationResponse])
def get_metrics(
    limit: int = Query(
        DEFAULT_LIMIT,
        ge=1,
        description="Number of most recent observations to return (default 10).",
    ),
    service: MetricQueryService = Depends(get_query_service),
):
    """
    Latest observations, oldest first, ready for charting.

    An empty list means no data has been ingested yet.
    """
    try:
        observations = service.get_latest(limit)
    except CallerInputInvalid as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)
    except StoreUnavailable as e:
        logger.error(f"Metrics query failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Metrics store unavailable",
        )
    return [ObservationResponse.from_observation(o) for o in observations]
