"""Tests for ChangeSetProcessor.apply."""

from unittest.mock import patch

import pytest

from conftest import make_change_set

from cochange_graph.exceptions import ChangeSetError, GraphError, RetrievalError
from cochange_graph.graph import BuildContext, ChangeSet, ChangeSetEdit, FailedChangeSet


def _weight(context, a, b):
    registry, graph = context.registry, context.graph
    return graph.edge_weight(registry.lookup(a), registry.lookup(b))


class TestScenarios:

    def test_two_files(self, context):
        context.processor.apply(make_change_set(1, "a.txt", "b.txt"))
        assert context.graph.node_count == 2
        assert context.graph.edge_count == 1
        assert _weight(context, "a.txt", "b.txt") == 1

    def test_second_change_set_reinforces_and_adds(self, populated_context):
        ctx = populated_context
        assert ctx.graph.node_count == 3
        assert _weight(ctx, "a.txt", "b.txt") == 2
        assert _weight(ctx, "a.txt", "c.txt") == 1
        assert _weight(ctx, "b.txt", "c.txt") == 1

    def test_unresolved_rename_merges_with_existing_path(self, populated_context):
        ctx = populated_context
        ctx.processor.apply(make_change_set(3, "b.txt", renames={"b.txt": "old_b.txt"}))
        assert ctx.graph.node_count == 3
        paths = [n.current_path for n in ctx.graph.nodes() if not n.retired]
        assert sorted(paths) == ["a.txt", "b.txt", "c.txt"]

    def test_single_file_ensures_node_without_edges(self, context):
        result = context.processor.apply(make_change_set(1, "solo.py"))
        assert result.reinforcements == 0
        assert context.graph.node_count == 1
        assert context.graph.edge_count == 0

    def test_empty_change_set(self, context):
        result = context.processor.apply(ChangeSet(change_id=1))
        assert result.reinforcements == 0
        assert context.graph.node_count == 0


class TestPairwiseReinforcement:

    @pytest.mark.parametrize("n", [0, 1, 2, 3, 5, 8])
    def test_pair_count(self, context, n):
        paths = [f"f{i}.py" for i in range(n)]
        result = context.processor.apply(make_change_set(1, *paths))
        assert result.reinforcements == n * (n - 1) // 2
        assert context.graph.edge_count == n * (n - 1) // 2

    def test_reinforce_called_once_per_pair(self, context):
        with patch.object(
            context.graph, "reinforce_edge", wraps=context.graph.reinforce_edge
        ) as spy:
            context.processor.apply(make_change_set(9, "a", "b", "c", "d"))
        assert spy.call_count == 6
        assert all(call.args[2] == 9 for call in spy.call_args_list)

    def test_duplicate_path_in_change_set_adds_no_self_edge(self, context):
        context.processor.apply(make_change_set(1, "a.py", "a.py", "b.py"))
        assert context.graph.node_count == 2
        assert context.graph.edge_count == 1
        assert _weight(context, "a.py", "b.py") == 1

    def test_rename_keeps_accumulated_edges(self, context):
        context.processor.apply(make_change_set(1, "old.py", "x.py"))
        context.processor.apply(make_change_set(2, "new.py", "x.py", renames={"new.py": "old.py"}))
        assert context.graph.node_count == 2
        assert _weight(context, "new.py", "x.py") == 2
        node = context.graph.node(context.registry.lookup("new.py"))
        assert node.previous_paths == ["old.py"]

    def test_sub_change_id_forwarded(self, context):
        context.processor.apply(make_change_set(4, "a", "b", sub_change_id="abc"))
        edge = context.graph.edge(0, 1)
        assert edge.sub_change_ids == {"abc"}


class TestRejection:

    def test_failed_change_set_raises_recoverable(self, context):
        with pytest.raises(RetrievalError) as info:
            context.processor.apply(FailedChangeSet(change_id=5, reason="HTTP 502"))
        assert info.value.recoverable
        assert context.graph.node_count == 0

    def test_empty_path_rejected_without_partial_nodes(self, context):
        bad = ChangeSet(change_id=1, edits=(ChangeSetEdit("a.py"), ChangeSetEdit("")))
        with pytest.raises(ChangeSetError):
            context.processor.apply(bad)
        assert len(context.registry) == 0
        assert context.graph.node_count == 0

    def test_sub_change_granularity_requires_sub_change_id(self):
        ctx = BuildContext.create("sub_change")
        with pytest.raises(GraphError):
            ctx.processor.apply(make_change_set(1, "a", "b"))
        assert len(ctx.registry) == 0
