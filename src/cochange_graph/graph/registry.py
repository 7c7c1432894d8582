"""Path -> node identity, with rename resolution.

Resolution is a pure decision over the path index:

    previous_path known        -> RENAME    (move that node to ``path``)
    path known                 -> EXISTING  (reuse, unchanged)
    neither known              -> CREATE    (fresh node)

A claimed ``previous_path`` that was never observed is not an error: the
history window may start after the file's last edit under its old name.
When ``path`` is already known in that case the edit joins the existing
node, so two live nodes never share a current path.
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Mapping, Optional

from ..exceptions import ErrorCode, GraphError
from ..logging_config import get_logger
from .models import ChangeSetEdit, FileNode

logger = get_logger(__name__)


class Resolution(Enum):
    RENAME = "rename"
    EXISTING = "existing"
    CREATE = "create"


def decide(edit: ChangeSetEdit, index: Mapping[str, int]) -> tuple[Resolution, Optional[int]]:
    """Pick how ``edit`` maps onto the path index. No side effects."""
    if edit.is_rename and edit.previous_path in index:
        return Resolution.RENAME, index[edit.previous_path]
    if edit.path in index:
        return Resolution.EXISTING, index[edit.path]
    return Resolution.CREATE, None


class FileRegistry:
    """Owns every FileNode and the index of every path ever observed.

    Thread-safe: each public call holds the registry lock for its duration.
    Pass the graph's lock to put both behind one boundary.
    """

    def __init__(self, lock: Optional[threading.RLock] = None) -> None:
        self._lock = lock or threading.RLock()
        self._nodes: list[FileNode] = []  # arena, node id == position
        self._index: dict[str, int] = {}

    def resolve_or_create(self, edit: ChangeSetEdit) -> int:
        """Return the node id for ``edit``, applying any rename it signals."""
        with self._lock:
            resolution, node_id = decide(edit, self._index)

            if resolution is Resolution.CREATE:
                return self._create(edit.path).id

            assert node_id is not None
            node = self._nodes[node_id]
            if resolution is Resolution.RENAME:
                self._rename(node, edit.path)
            return node.id

    def lookup(self, path: str) -> Optional[int]:
        with self._lock:
            return self._index.get(path)

    def node(self, node_id: int) -> FileNode:
        with self._lock:
            if not 0 <= node_id < len(self._nodes):
                raise GraphError(
                    f"Unknown node id {node_id}",
                    code=ErrorCode.CG301,
                    context={"node_id": node_id},
                )
            return self._nodes[node_id]

    def nodes(self) -> list[FileNode]:
        with self._lock:
            return list(self._nodes)

    def live_nodes(self) -> list[FileNode]:
        with self._lock:
            return [n for n in self._nodes if not n.retired]

    def __len__(self) -> int:
        with self._lock:
            return len(self._nodes)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._index

    # ── internals ──────────────────────────────────────────────────

    def _create(self, path: str) -> FileNode:
        node = FileNode(id=len(self._nodes), current_path=path)
        self._nodes.append(node)
        self._index[path] = node.id
        logger.debug("New file node %d: %s", node.id, path)
        return node

    def _rename(self, node: FileNode, new_path: str) -> None:
        holder_id = self._index.get(new_path)
        if holder_id is not None and holder_id != node.id:
            holder = self._nodes[holder_id]
            if holder.current_path == new_path and not holder.retired:
                # The holder's file was deleted and its path reused
                holder.retired = True
                logger.debug(
                    "Node %d retired: %s taken over by node %d", holder.id, new_path, node.id
                )

        old_path = node.current_path
        if node.move_to(new_path):
            logger.debug("Rename on node %d: %s -> %s", node.id, old_path, new_path)
        node.retired = False

        self._index[new_path] = node.id
        for path in node.previous_paths:
            self._index.setdefault(path, node.id)
