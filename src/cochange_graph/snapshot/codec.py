"""Flatten a co-change graph into a node/edge document, and back.

Snapshot shape::

    {
      "granularity": "change_set",
      "nodes": [{"id": 0, "path": "src/a.py", "previous_paths": [],
                 "retired": false}, ...],
      "edges": [{"source": 0, "target": 1, "weight": 2,
                 "change_ids": [12, 15], "sub_change_ids": []}, ...]
    }

Snapshot ids are dense and zero-based, assigned in internal-id order on
each export; ``source``/``target`` refer to them, not to internal ids.
``weight`` is informational and ignored when decoding. ``granularity``
names the contribution set ``weight`` counts; decoding restores it.
"""

from __future__ import annotations

import json
from typing import Any, Optional, TypedDict, Union

from ..exceptions import ErrorCode, SnapshotError
from ..graph.cochange import CoChangeGraph
from ..graph.models import ChangeId, FileNode, Granularity


class SnapshotNode(TypedDict):
    id: int
    path: str
    previous_paths: list[str]
    retired: bool


class SnapshotEdge(TypedDict):
    source: int
    target: int
    weight: int
    change_ids: list[ChangeId]
    sub_change_ids: list[str]


class Snapshot(TypedDict):
    granularity: str
    nodes: list[SnapshotNode]
    edges: list[SnapshotEdge]


def _sort_ids(ids) -> list:
    # ints before strings, each group in natural order
    return sorted(ids, key=lambda c: (isinstance(c, str), c))


def export(graph: CoChangeGraph) -> Snapshot:
    """Read-only flattening of ``graph``. Visits each node and edge once."""
    with graph.locked():
        nodes = graph.nodes()
        snapshot_ids = {node.id: i for i, node in enumerate(nodes)}

        out_nodes: list[SnapshotNode] = [
            {
                "id": snapshot_ids[node.id],
                "path": node.current_path,
                "previous_paths": list(node.previous_paths),
                "retired": node.retired,
            }
            for node in nodes
        ]

        out_edges: list[SnapshotEdge] = []
        for edge in graph.all_edges():
            source, target = snapshot_ids[edge.source], snapshot_ids[edge.target]
            if source > target:
                source, target = target, source
            out_edges.append(
                {
                    "source": source,
                    "target": target,
                    "weight": edge.weight(graph.granularity),
                    "change_ids": _sort_ids(edge.change_ids),
                    "sub_change_ids": sorted(edge.sub_change_ids),
                }
            )

    out_edges.sort(key=lambda e: (e["source"], e["target"]))
    return {
        "granularity": graph.granularity.value,
        "nodes": out_nodes,
        "edges": out_edges,
    }


def decode(
    snapshot: Any, granularity: Optional[Union[Granularity, str]] = None
) -> CoChangeGraph:
    """Rebuild a graph from a snapshot document.

    ``granularity`` defaults to the one recorded in the document, or
    ``change_set`` for documents that predate the field.

    Raises:
        SnapshotError: the document is malformed, an edge references an
            unknown node, or an edge carries no change ids
    """
    if not isinstance(snapshot, dict):
        raise _malformed("snapshot must be an object")
    raw_nodes = snapshot.get("nodes")
    raw_edges = snapshot.get("edges")
    if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
        raise _malformed("snapshot needs 'nodes' and 'edges' lists")

    if granularity is None:
        granularity = snapshot.get("granularity", Granularity.CHANGE_SET.value)
    try:
        graph = CoChangeGraph(granularity)
    except (TypeError, ValueError):
        raise _malformed(f"unknown granularity {granularity!r}") from None

    by_snapshot_id: dict[int, int] = {}

    for position, raw in enumerate(raw_nodes):
        if not isinstance(raw, dict):
            raise _malformed(f"node #{position} is not an object")
        snapshot_id, path = raw.get("id"), raw.get("path")
        if not isinstance(snapshot_id, int) or not isinstance(path, str) or not path:
            raise _malformed(f"node #{position} needs an integer id and a path")
        if snapshot_id in by_snapshot_id:
            raise _malformed(f"duplicate node id {snapshot_id}")
        previous = raw.get("previous_paths") or []
        if not isinstance(previous, list) or not all(isinstance(p, str) for p in previous):
            raise _malformed(f"node {snapshot_id} has invalid previous_paths")

        retired = raw.get("retired", False)
        if not isinstance(retired, bool):
            raise _malformed(f"node {snapshot_id} has a non-boolean retired flag")

        node = FileNode(
            id=position,
            current_path=path,
            previous_paths=list(previous),
            retired=retired,
        )
        graph.get_or_create_node(node)
        by_snapshot_id[snapshot_id] = node.id

    _mark_retired(graph)

    for position, raw in enumerate(raw_edges):
        if not isinstance(raw, dict):
            raise _malformed(f"edge #{position} is not an object")
        source, target = raw.get("source"), raw.get("target")
        if not isinstance(source, int) or not isinstance(target, int):
            raise _malformed(f"edge #{position} needs integer source and target")
        if source not in by_snapshot_id or target not in by_snapshot_id:
            raise SnapshotError(
                f"Edge #{position} references an unknown node",
                code=ErrorCode.CG401,
                context={"source": source, "target": target},
                recoverable=False,
            )
        if source == target:
            raise _malformed(f"edge #{position} is a self-loop")
        change_ids = raw.get("change_ids")
        sub_change_ids = raw.get("sub_change_ids") or []
        if not isinstance(change_ids, list) or not change_ids:
            raise _malformed(f"edge #{position} has no change_ids")
        if not all(_is_change_id(c) for c in change_ids):
            raise _malformed(f"edge #{position} has invalid change_ids")
        if not isinstance(sub_change_ids, list) or not all(
            isinstance(s, str) for s in sub_change_ids
        ):
            raise _malformed(f"edge #{position} has invalid sub_change_ids")
        graph.merge_edge(
            by_snapshot_id[source], by_snapshot_id[target], change_ids, sub_change_ids
        )

    return graph


def to_json(snapshot: Snapshot, indent: Optional[int] = 2) -> str:
    return json.dumps(snapshot, indent=indent)


def from_json(text: str) -> Snapshot:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise _malformed(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise _malformed("snapshot must be an object")
    return data  # type: ignore[return-value]


def _is_change_id(value: Any) -> bool:
    # bool is an int subclass but never a pull request number
    return isinstance(value, str) or (isinstance(value, int) and not isinstance(value, bool))


def _mark_retired(graph: CoChangeGraph) -> None:
    # Documents without retired flags: later nodes win a shared current path
    holders: dict[str, FileNode] = {}
    for node in graph.nodes():
        if node.retired:
            continue
        earlier = holders.get(node.current_path)
        if earlier is not None:
            earlier.retired = True
        holders[node.current_path] = node


def _malformed(reason: str) -> SnapshotError:
    return SnapshotError(
        f"Malformed snapshot: {reason}",
        code=ErrorCode.CG400,
        recoverable=False,
    )
