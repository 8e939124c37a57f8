"""
Storage - Base Observation Store.

============================================================
PURPOSE
============================================================
Abstract capability shared by the ingestion job (writer) and
the query service (reader): append one observation, read the
most recent ones.

============================================================
DESIGN PRINCIPLES
============================================================
- Append-only: no update or delete path
- Every database failure surfaces as StoreUnavailable
- Reads return oldest first

============================================================
"""

from abc import ABC, abstractmethod
from typing import List

from storage.types import NewObservation, Observation


class BaseObservationStore(ABC):
    """Abstract base class for observation stores."""

    @abstractmethod
    def insert(self, observation: NewObservation) -> Observation:
        """
        Append one observation.

        Returns:
            The persisted observation with store-assigned id and created_at

        Raises:
            StoreUnavailable: If the write fails or exceeds its deadline
        """
        pass

    @abstractmethod
    def latest(self, n: int) -> List[Observation]:
        """
        Up to n most recent observations, oldest first.

        Raises:
            CallerInputInvalid: If n is not a positive integer
            StoreUnavailable: If the query fails
        """
        pass
