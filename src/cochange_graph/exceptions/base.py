"""Base exception for cochange-graph.

Configuration and CLI-facing errors derive from CoChangeGraphError directly.
Errors raised while reading history or handling snapshots use the coded
CoChangeError taxonomy instead, which carries recoverability.
"""

from typing import Any, Dict, Mapping, Optional


class CoChangeGraphError(Exception):
    """Base exception for all user-facing cochange-graph errors.

    ``details`` values are stringified on the way in (paths, ints), so the
    rendered message is stable and printable by the CLI as-is.
    """

    def __init__(self, message: str, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, str] = {k: str(v) for k, v in (details or {}).items()}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message
