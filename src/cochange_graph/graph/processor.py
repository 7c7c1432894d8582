"""Apply one change-set to the registry and graph."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import Union

from ..exceptions import ChangeSetError, ErrorCode, GraphError, RetrievalError
from ..logging_config import get_logger
from .cochange import CoChangeGraph
from .models import ChangeId, ChangeSet, FailedChangeSet, Granularity
from .registry import FileRegistry

logger = get_logger(__name__)


@dataclass(frozen=True)
class AppliedChangeSet:
    change_id: ChangeId
    node_ids: tuple[int, ...]
    reinforcements: int  # n*(n-1)/2 for n edits


class ChangeSetProcessor:
    """Turns a change-set's file list into pairwise edge reinforcements.

    Every check that can reject a change-set runs before the first
    mutation, so a rejected change-set leaves no nodes or edges behind.
    """

    def __init__(self, registry: FileRegistry, graph: CoChangeGraph) -> None:
        self.registry = registry
        self.graph = graph

    def apply(self, change_set: Union[ChangeSet, FailedChangeSet]) -> AppliedChangeSet:
        """Apply ``change_set``.

        Raises:
            RetrievalError: the source could not supply the file list (recoverable)
            ChangeSetError: an edit is malformed (recoverable)
            GraphError: the change-set lacks the sub-change id the graph needs
        """
        if isinstance(change_set, FailedChangeSet):
            raise RetrievalError(
                f"File list unavailable for change-set {change_set.change_id}",
                code=ErrorCode.CG100,
                context={"change_id": change_set.change_id, "reason": change_set.reason},
            )
        self._validate(change_set)

        resolved: list[tuple[str, int]] = []
        for edit in change_set.edits:
            node_id = self.registry.resolve_or_create(edit)
            self.graph.get_or_create_node(self.registry.node(node_id))
            resolved.append((edit.path, node_id))

        reinforcements = 0
        for (_, id_a), (_, id_b) in combinations(resolved, 2):
            self.graph.reinforce_edge(
                id_a, id_b, change_set.change_id, change_set.sub_change_id
            )
            reinforcements += 1

        return AppliedChangeSet(
            change_id=change_set.change_id,
            node_ids=tuple(node_id for _, node_id in resolved),
            reinforcements=reinforcements,
        )

    def _validate(self, change_set: ChangeSet) -> None:
        for edit in change_set.edits:
            if not isinstance(edit.path, str) or not edit.path:
                raise ChangeSetError(
                    f"Change-set {change_set.change_id} has an edit without a path",
                    code=ErrorCode.CG200,
                    context={"change_id": change_set.change_id},
                )
        if (
            self.graph.granularity is Granularity.SUB_CHANGE
            and change_set.sub_change_id is None
            and len(change_set.edits) > 1
        ):
            raise GraphError(
                f"Change-set {change_set.change_id} has no sub-change id",
                code=ErrorCode.CG300,
                context={"change_id": change_set.change_id},
                recovery_hint="Supply one change-set per commit with its sha",
            )
