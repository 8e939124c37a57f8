"""
FastAPI dependencies.

Components are built once at startup and attached to app.state;
routes receive them through these providers, which tests can
override with app.dependency_overrides.
"""
from typing import Optional

from fastapi import Request

from dashboard.services import MetricQueryService
from data_ingestion.ingestion_job import IngestionJob
from storage.observation_store import ObservationStore


def get_query_service(request: Request) -> MetricQueryService:
    return request.app.state.query_service


def get_store(request: Request) -> ObservationStore:
    return request.app.state.store


def get_ingestion_job(request: Request) -> Optional[IngestionJob]:
    return getattr(request.app.state, "ingestion_job", None)
