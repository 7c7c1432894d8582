"""
cochange-graph - infer which files change together.

Replays the file lists of historical change-sets (pull requests and their
commits) into a weighted, rename-aware co-change graph and exports it as a
JSON node/edge snapshot.
"""

__version__ = "0.1.0"

from .graph import (
    BuildContext,
    ChangeSet,
    ChangeSetEdit,
    CoChangeGraph,
    FailedChangeSet,
    FileRegistry,
    Granularity,
    build_graph,
)
from .snapshot import decode, export

__all__ = [
    "build_graph",
    "BuildContext",
    "ChangeSet",
    "ChangeSetEdit",
    "FailedChangeSet",
    "CoChangeGraph",
    "FileRegistry",
    "Granularity",
    "export",
    "decode",
]
