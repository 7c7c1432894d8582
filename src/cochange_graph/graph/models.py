"""Data models for the co-change graph.

  FileNode        one logical file across every path it has had
  ChangeSetEdit   one file entry of a change-set
  ChangeSet       a unit of work (pull request, or one of its commits)
  CoChangeEdge    undirected, deduplicated co-occurrence between two nodes
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

ChangeId = Union[int, str]


class Granularity(str, Enum):
    """Which contribution set an edge's weight counts."""

    CHANGE_SET = "change_set"
    SUB_CHANGE = "sub_change"


# ── Nodes ──────────────────────────────────────────────────────────


@dataclass
class FileNode:
    """One logical file. ``id`` never changes; paths move on rename."""

    id: int
    current_path: str
    previous_paths: list[str] = field(default_factory=list)
    retired: bool = False  # path taken over by another node's rename

    def move_to(self, new_path: str) -> bool:
        """Record a rename. Returns False when the path is unchanged."""
        if new_path == self.current_path:
            return False
        self.previous_paths.append(self.current_path)
        # Moving back to an earlier name: history must not hold the live path
        self.previous_paths = [p for p in self.previous_paths if p != new_path]
        self.current_path = new_path
        return True


# ── Change-sets (input records) ────────────────────────────────────


@dataclass(frozen=True)
class ChangeSetEdit:
    path: str
    previous_path: Optional[str] = None  # set when the file was renamed

    @property
    def is_rename(self) -> bool:
        return self.previous_path is not None and self.previous_path != self.path


@dataclass(frozen=True)
class ChangeSet:
    """Files edited together in one unit of work.

    ``sub_change_id`` identifies the finer-grained unit (a commit sha) when
    the caller supplies one change-set per commit.
    """

    change_id: ChangeId
    edits: tuple[ChangeSetEdit, ...] = ()
    sub_change_id: Optional[str] = None
    title: str = ""

    @property
    def paths(self) -> list[str]:
        return [e.path for e in self.edits]


@dataclass(frozen=True)
class FailedChangeSet:
    """Placeholder yielded by a source that could not fetch a file list."""

    change_id: ChangeId
    reason: str


# ── Edges ──────────────────────────────────────────────────────────


def edge_key(a: int, b: int) -> tuple[int, int]:
    """Canonical key of the unordered pair ``{a, b}``."""
    return (a, b) if a < b else (b, a)


@dataclass
class CoChangeEdge:
    """Undirected edge. Weight is derived from the sets, never stored."""

    source: int
    target: int
    change_ids: set[ChangeId] = field(default_factory=set)
    sub_change_ids: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        if self.source == self.target:
            raise ValueError("co-change edge endpoints must differ")
        self.source, self.target = edge_key(self.source, self.target)

    @property
    def key(self) -> tuple[int, int]:
        return (self.source, self.target)

    def weight(self, granularity: Granularity = Granularity.CHANGE_SET) -> int:
        if granularity is Granularity.SUB_CHANGE:
            return len(self.sub_change_ids)
        return len(self.change_ids)

    def other(self, node_id: int) -> int:
        return self.target if node_id == self.source else self.source
