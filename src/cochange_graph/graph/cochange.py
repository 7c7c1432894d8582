"""Undirected co-change graph over file nodes.

Edges live in a map keyed by the canonical ``(min id, max id)`` pair, so a
pair has at most one edge and lookup is a single dict access. An adjacency
index mirrors the map for per-node queries.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional, Union

from ..exceptions import ErrorCode, GraphError
from .models import ChangeId, CoChangeEdge, FileNode, Granularity, edge_key


class EdgeView:
    """Re-iterable view over the graph's edges.

    Each iteration walks a copy taken under the graph lock, so iterating
    never observes a half-applied reinforcement.
    """

    def __init__(self, graph: "CoChangeGraph") -> None:
        self._graph = graph

    def __iter__(self) -> Iterator[CoChangeEdge]:
        with self._graph._lock:
            edges = list(self._graph._edges.values())
        return iter(edges)

    def __len__(self) -> int:
        return self._graph.edge_count


class CoChangeGraph:
    """File nodes plus weighted, deduplicated co-change edges.

    Thread-safe: every mutation and query holds the graph lock.
    """

    def __init__(
        self,
        granularity: Union[Granularity, str] = Granularity.CHANGE_SET,
        lock: Optional[threading.RLock] = None,
    ) -> None:
        self.granularity = Granularity(granularity)
        self._lock = lock or threading.RLock()
        self._nodes: dict[int, FileNode] = {}
        self._edges: dict[tuple[int, int], CoChangeEdge] = {}
        self._adjacency: dict[int, set[int]] = {}

    # ── nodes ──────────────────────────────────────────────────────

    def get_or_create_node(self, node: FileNode) -> FileNode:
        """Add ``node`` unless a node with its id is present; return the stored one."""
        with self._lock:
            existing = self._nodes.get(node.id)
            if existing is not None:
                return existing
            self._nodes[node.id] = node
            self._adjacency[node.id] = set()
            return node

    def node(self, node_id: int) -> FileNode:
        with self._lock:
            try:
                return self._nodes[node_id]
            except KeyError:
                raise GraphError(
                    f"Unknown node id {node_id}",
                    code=ErrorCode.CG301,
                    context={"node_id": node_id},
                ) from None

    def nodes(self) -> list[FileNode]:
        """All nodes ordered by id."""
        with self._lock:
            return [self._nodes[k] for k in sorted(self._nodes)]

    def find_node(self, path: str) -> Optional[FileNode]:
        """Node whose current path is ``path``, preferring live nodes."""
        with self._lock:
            matches = [n for n in self._nodes.values() if n.current_path == path]
            if not matches:
                matches = [n for n in self._nodes.values() if path in n.previous_paths]
            if not matches:
                return None
            matches.sort(key=lambda n: (n.retired, -n.id))
            return matches[0]

    @property
    def node_count(self) -> int:
        with self._lock:
            return len(self._nodes)

    # ── edges ──────────────────────────────────────────────────────

    def reinforce_edge(
        self,
        id_a: int,
        id_b: int,
        change_id: ChangeId,
        sub_change_id: Optional[str] = None,
    ) -> None:
        """Record that ``id_a`` and ``id_b`` changed together in ``change_id``.

        Self-pairs are ignored. Repeating a change id never grows the weight.
        """
        if id_a == id_b:
            return
        if self.granularity is Granularity.SUB_CHANGE and sub_change_id is None:
            raise GraphError(
                "Sub-change id required under sub-change granularity",
                code=ErrorCode.CG300,
                context={"change_id": change_id},
                recovery_hint="Supply one change-set per commit with its sha",
            )
        with self._lock:
            edge = self._edge_for_update(id_a, id_b)
            edge.change_ids.add(change_id)
            if sub_change_id is not None:
                edge.sub_change_ids.add(sub_change_id)

    def merge_edge(
        self,
        id_a: int,
        id_b: int,
        change_ids: Iterable[ChangeId],
        sub_change_ids: Iterable[str] = (),
    ) -> None:
        """Union whole contribution sets into an edge (used when decoding)."""
        if id_a == id_b:
            return
        with self._lock:
            edge = self._edge_for_update(id_a, id_b)
            edge.change_ids.update(change_ids)
            edge.sub_change_ids.update(sub_change_ids)

    def edge(self, id_a: int, id_b: int) -> Optional[CoChangeEdge]:
        with self._lock:
            return self._edges.get(edge_key(id_a, id_b))

    def edge_weight(self, id_a: int, id_b: int) -> int:
        """Distinct contributions for the pair under this graph's granularity; 0 if none."""
        with self._lock:
            edge = self._edges.get(edge_key(id_a, id_b))
            return edge.weight(self.granularity) if edge is not None else 0

    def all_edges(self) -> EdgeView:
        return EdgeView(self)

    def neighbors(self, node_id: int) -> dict[int, int]:
        """Co-changed node ids of ``node_id`` mapped to edge weight."""
        with self._lock:
            return {
                other: self._edges[edge_key(node_id, other)].weight(self.granularity)
                for other in self._adjacency.get(node_id, ())
            }

    @property
    def edge_count(self) -> int:
        with self._lock:
            return len(self._edges)

    @contextmanager
    def locked(self) -> Iterator["CoChangeGraph"]:
        """Hold the graph lock across several reads (snapshot export)."""
        with self._lock:
            yield self

    def _edge_for_update(self, id_a: int, id_b: int) -> CoChangeEdge:
        for node_id in (id_a, id_b):
            if node_id not in self._nodes:
                raise GraphError(
                    f"Unknown node id {node_id}",
                    code=ErrorCode.CG301,
                    context={"node_id": node_id},
                )
        key = edge_key(id_a, id_b)
        edge = self._edges.get(key)
        if edge is None:
            edge = CoChangeEdge(source=key[0], target=key[1])
            self._edges[key] = edge
            self._adjacency[key[0]].add(key[1])
            self._adjacency[key[1]].add(key[0])
        return edge
