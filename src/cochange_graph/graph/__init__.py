"""Co-change graph construction: file identity, edges, and the run driver."""

from .builder import BuildContext, BuildSummary, SkippedChangeSet, build_graph
from .cochange import CoChangeGraph
from .models import (
    ChangeSet,
    ChangeSetEdit,
    CoChangeEdge,
    FailedChangeSet,
    FileNode,
    Granularity,
)
from .processor import AppliedChangeSet, ChangeSetProcessor
from .registry import FileRegistry, Resolution, decide

__all__ = [
    "FileNode",
    "ChangeSetEdit",
    "ChangeSet",
    "FailedChangeSet",
    "CoChangeEdge",
    "Granularity",
    "FileRegistry",
    "Resolution",
    "decide",
    "CoChangeGraph",
    "ChangeSetProcessor",
    "AppliedChangeSet",
    "BuildContext",
    "BuildSummary",
    "SkippedChangeSet",
    "build_graph",
]
