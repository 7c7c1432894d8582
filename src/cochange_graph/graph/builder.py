"""Run driver: feed change-sets through one builder context."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from ..exceptions import ChangeSetError, CoChangeError, ErrorCode
from ..logging_config import get_logger, log_skipped_change_set
from .cochange import CoChangeGraph
from .models import ChangeId, ChangeSet, FailedChangeSet, Granularity
from .processor import ChangeSetProcessor
from .registry import FileRegistry

logger = get_logger(__name__)

ChangeSetItem = Union[ChangeSet, FailedChangeSet]


@dataclass
class BuildContext:
    """Registry, graph and processor for one run. Created empty, never shared across runs."""

    registry: FileRegistry
    graph: CoChangeGraph
    processor: ChangeSetProcessor

    @classmethod
    def create(cls, granularity: Union[Granularity, str] = Granularity.CHANGE_SET) -> "BuildContext":
        # One lock for both: export never sees a rename half-applied
        lock = threading.RLock()
        registry = FileRegistry(lock)
        graph = CoChangeGraph(granularity, lock)
        return cls(registry=registry, graph=graph, processor=ChangeSetProcessor(registry, graph))


@dataclass(frozen=True)
class SkippedChangeSet:
    change_id: ChangeId
    reason: str
    error_code: str


@dataclass
class BuildSummary:
    context: BuildContext
    applied: int = 0
    reinforcements: int = 0
    skipped: list[SkippedChangeSet] = field(default_factory=list)

    @property
    def graph(self) -> CoChangeGraph:
        return self.context.graph

    @property
    def node_count(self) -> int:
        return self.context.graph.node_count

    @property
    def edge_count(self) -> int:
        return self.context.graph.edge_count


def build_graph(
    items: Iterable[ChangeSetItem],
    context: Optional[BuildContext] = None,
    granularity: Union[Granularity, str] = Granularity.CHANGE_SET,
    max_files_per_change_set: Optional[int] = None,
) -> BuildSummary:
    """Apply every item in order, skipping the ones that fail.

    Recoverable errors (failed retrieval, malformed records, bulk
    change-sets over ``max_files_per_change_set``) are logged and listed in
    the summary. Anything else propagates.
    """
    if context is None:
        context = BuildContext.create(granularity)
    summary = BuildSummary(context=context)

    for item in items:
        try:
            if (
                max_files_per_change_set is not None
                and isinstance(item, ChangeSet)
                and len(item.edits) > max_files_per_change_set
            ):
                raise ChangeSetError(
                    f"Change-set {item.change_id} touches {len(item.edits)} files",
                    code=ErrorCode.CG201,
                    context={"change_id": item.change_id, "files": len(item.edits)},
                )
            result = context.processor.apply(item)
        except CoChangeError as exc:
            if not exc.recoverable:
                raise
            log_skipped_change_set(logger, item.change_id, exc.code.value, exc.message)
            summary.skipped.append(
                SkippedChangeSet(
                    change_id=item.change_id,
                    reason=exc.message,
                    error_code=exc.code.value,
                )
            )
            continue

        summary.applied += 1
        summary.reinforcements += result.reinforcements

    logger.info(
        "Applied %d change-set(s), skipped %d: %d nodes, %d edges",
        summary.applied,
        len(summary.skipped),
        summary.node_count,
        summary.edge_count,
    )
    return summary
