"""
Query Services for the Dashboard.

Read-only facade over the observation store. Caller input is
validated here, before any store access.
"""
import logging
from typing import List

from core.exceptions import CallerInputInvalid
from storage.base import BaseObservationStore
from storage.types import Observation


DEFAULT_LIMIT = 10


class MetricQueryService:
    def __init__(self, store: BaseObservationStore, max_limit: int = 1000):
        self.store = store
        self.max_limit = max_limit
        self._logger = logging.getLogger("dashboard.metrics")

    def get_latest(self, limit: int = DEFAULT_LIMIT) -> List[Observation]:
        """
        Most recent observations, oldest first.

        Raises:
            CallerInputInvalid: limit is not an integer in [1, max_limit]
            StoreUnavailable: the store query failed
        """
        if isinstance(limit, bool) or not isinstance(limit, int):
            raise CallerInputInvalid("limit", limit, "must be an integer")
        if limit < 1:
            raise CallerInputInvalid("limit", limit, "must be a positive integer")
        if limit > self.max_limit:
            raise CallerInputInvalid("limit", limit, f"must not exceed {self.max_limit}")

        self._logger.info(f"Fetching latest {limit} metrics")
        return self.store.latest(limit)
