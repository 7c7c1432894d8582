"""Exception hierarchy for cochange-graph."""

from .base import CoChangeGraphError
from .config import (
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
)
from .taxonomy import (
    ChangeSetError,
    CoChangeError,
    ErrorCode,
    GraphError,
    PersistenceError,
    RetrievalError,
    SnapshotError,
)

__all__ = [
    "CoChangeGraphError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidConfigError",
    "CoChangeError",
    "ErrorCode",
    "RetrievalError",
    "ChangeSetError",
    "GraphError",
    "SnapshotError",
    "PersistenceError",
]
