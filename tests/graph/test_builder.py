"""Tests for the build_graph run driver."""

import pytest

from conftest import make_change_set

from cochange_graph.exceptions import ErrorCode, PersistenceError
from cochange_graph.graph import BuildContext, FailedChangeSet, Granularity, build_graph
from cochange_graph.graph.models import ChangeSet


class TestBuildGraph:

    def test_empty_sequence(self):
        summary = build_graph([])
        assert summary.applied == 0
        assert summary.node_count == 0
        assert summary.edge_count == 0
        assert summary.skipped == []

    def test_applies_in_order(self):
        summary = build_graph(
            [make_change_set(1, "a", "b"), make_change_set(2, "a", "b", "c")]
        )
        assert summary.applied == 2
        assert summary.reinforcements == 4
        assert summary.node_count == 3
        assert summary.edge_count == 3

    def test_failed_retrieval_skipped_and_run_continues(self):
        summary = build_graph(
            [
                make_change_set(1, "a", "b"),
                FailedChangeSet(change_id=2, reason="HTTP 500"),
                make_change_set(3, "a", "c"),
            ]
        )
        assert summary.applied == 2
        assert [s.change_id for s in summary.skipped] == [2]
        assert summary.skipped[0].error_code == ErrorCode.CG100.value
        assert summary.edge_count == 2

    def test_failed_change_set_leaves_no_trace(self):
        summary = build_graph([FailedChangeSet(change_id=1, reason="timeout")])
        assert summary.node_count == 0

    def test_bulk_change_set_skipped(self):
        bulk = make_change_set(1, *[f"f{i}" for i in range(10)])
        summary = build_graph(
            [bulk, make_change_set(2, "a", "b")], max_files_per_change_set=5
        )
        assert summary.applied == 1
        assert summary.skipped[0].error_code == ErrorCode.CG201.value
        assert summary.node_count == 2

    def test_granularity_passed_to_graph(self):
        summary = build_graph(
            [
                make_change_set(10, "a", "b", sub_change_id="s1"),
                make_change_set(10, "a", "b", sub_change_id="s2"),
            ],
            granularity=Granularity.SUB_CHANGE,
        )
        assert summary.graph.granularity is Granularity.SUB_CHANGE
        assert summary.graph.edge_weight(0, 1) == 2

    def test_missing_sub_change_id_is_skipped_under_sub_change(self):
        summary = build_graph([make_change_set(10, "a", "b")], granularity="sub_change")
        assert summary.applied == 0
        assert summary.skipped[0].error_code == ErrorCode.CG300.value

    def test_uses_given_context(self):
        ctx = BuildContext.create()
        summary = build_graph([make_change_set(1, "a", "b")], context=ctx)
        assert summary.context is ctx
        assert ctx.graph.edge_count == 1

    def test_non_recoverable_error_propagates(self):
        def items():
            yield make_change_set(1, "a", "b")
            raise PersistenceError("disk gone", code=ErrorCode.CG500, recoverable=False)

        with pytest.raises(PersistenceError):
            build_graph(items())

    def test_items_consumed_lazily(self):
        seen = []

        def items():
            for i in range(3):
                seen.append(i)
                yield ChangeSet(change_id=i)

        build_graph(items())
        assert seen == [0, 1, 2]


class TestBuildContext:

    def test_registry_and_graph_share_one_lock(self):
        context = BuildContext.create()
        assert context.registry._lock is context.graph._lock

    def test_contexts_are_independent(self):
        a, b = BuildContext.create(), BuildContext.create()
        build_graph([make_change_set(1, "x.py", "y.py")], context=a)
        assert a.graph.edge_count == 1
        assert b.graph.edge_count == 0
