"""Error taxonomy with error codes and recovery hints.

Error Code Convention:
    CG1xx - Retrieval errors (remote API, local git)
    CG2xx - Change-set errors (malformed records)
    CG3xx - Graph errors
    CG4xx - Snapshot codec errors
    CG5xx - Persistence errors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Structured error codes for observability and debugging."""

    # Retrieval errors (CG1xx)
    CG100 = "CG100"  # File list unavailable for a change-set
    CG101 = "CG101"  # Change-set listing failed
    CG102 = "CG102"  # Rate limit exhausted
    CG103 = "CG103"  # Git not found or not a repository
    CG104 = "CG104"  # Git log parse failed

    # Change-set errors (CG2xx)
    CG200 = "CG200"  # Edit has an empty path
    CG201 = "CG201"  # Change-set exceeds the bulk file limit

    # Graph errors (CG3xx)
    CG300 = "CG300"  # Sub-change id missing under sub-change granularity
    CG301 = "CG301"  # Unknown node id

    # Snapshot codec errors (CG4xx)
    CG400 = "CG400"  # Malformed snapshot document
    CG401 = "CG401"  # Edge references unknown node

    # Persistence errors (CG5xx)
    CG500 = "CG500"  # Snapshot write failed
    CG501 = "CG501"  # Snapshot read failed


@dataclass
class CoChangeError(Exception):
    """Base exception with structured context for logging.

    Attributes:
        message: Human-readable error description
        code: Structured error code for categorization
        context: Additional context (change id, path, url, etc.)
        recoverable: Whether the run can continue past this error
        recovery_hint: Suggested fix for the user
    """

    message: str
    code: ErrorCode
    context: dict[str, Any] = field(default_factory=dict)
    recoverable: bool = True
    recovery_hint: str | None = None

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __post_init__(self) -> None:
        super().__init__(str(self))

    def to_json(self) -> dict[str, Any]:
        """Structured logging format."""
        return {
            "error_code": self.code.value,
            "message": self.message,
            "context": self.context,
            "recoverable": self.recoverable,
            "recovery_hint": self.recovery_hint,
        }


class RetrievalError(CoChangeError):
    """Errors fetching change-sets from a source (CG1xx)."""

    pass


class ChangeSetError(CoChangeError):
    """Malformed or rejected change-set records (CG2xx)."""

    pass


class GraphError(CoChangeError):
    """Errors mutating or querying the co-change graph (CG3xx)."""

    pass


class SnapshotError(CoChangeError):
    """Errors encoding or decoding snapshots (CG4xx)."""

    pass


class PersistenceError(CoChangeError):
    """Errors writing or reading snapshot files (CG5xx)."""

    pass
