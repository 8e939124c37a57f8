"""
Repository Layer Package.

============================================================
PURPOSE
============================================================
The Repository Layer is the ONLY gateway to persistent storage.
All database access goes through repository classes.

============================================================
ARCHITECTURE PRINCIPLES
============================================================
1. Session Injection: Sessions are injected, not created internally
2. Explicit Methods: No generic 'execute', clear method names
3. Immutability: Metrics are append-only
4. Exception Handling: All DB errors wrapped in repository exceptions

============================================================
MODULES
============================================================
- base: BaseRepository
- metric_repo: MetricRepository
- exceptions: Repository exception family

Models import the exceptions module, so this package only
re-exports exceptions to keep import order acyclic.

============================================================
"""

from storage.repositories.exceptions import (
    ConnectionFailure,
    ConstraintViolation,
    ImmutableRecordError,
    QueryError,
    RepositoryException,
    TransactionError,
)


__all__ = [
    "RepositoryException",
    "ConnectionFailure",
    "ConstraintViolation",
    "QueryError",
    "TransactionError",
    "ImmutableRecordError",
]
