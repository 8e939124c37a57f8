"""
Storage Package.

Manages persistence of observations.

Modules:
- database: Engine, sessions, schema
- models/: ORM models
- repositories/: Data access layer
- observation_store: Append-only store used by the job and the API
"""

from storage.database import (
    DatabaseConfig,
    check_connection,
    create_database_engine,
    create_session_factory,
    init_schema,
)
from storage.base import BaseObservationStore
from storage.observation_store import ObservationStore
from storage.types import NewObservation, Observation


__all__ = [
    "DatabaseConfig",
    "check_connection",
    "create_database_engine",
    "create_session_factory",
    "init_schema",
    "BaseObservationStore",
    "ObservationStore",
    "NewObservation",
    "Observation",
]
