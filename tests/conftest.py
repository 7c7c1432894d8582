"""Shared test fixtures for cochange-graph tests."""

import pytest

from cochange_graph.graph import BuildContext, ChangeSet, ChangeSetEdit


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def make_change_set(change_id, *paths, sub_change_id=None, renames=None):
    """Change-set over ``paths``; ``renames`` maps new path -> previous path."""
    renames = renames or {}
    return ChangeSet(
        change_id=change_id,
        edits=tuple(ChangeSetEdit(path=p, previous_path=renames.get(p)) for p in paths),
        sub_change_id=sub_change_id,
    )


@pytest.fixture
def context():
    """Empty builder context at change-set granularity."""
    return BuildContext.create()


@pytest.fixture
def populated_context(context):
    """Context after the two-change-set scenario: a+b, then a+b+c."""
    context.processor.apply(make_change_set(1, "a.txt", "b.txt"))
    context.processor.apply(make_change_set(2, "a.txt", "b.txt", "c.txt"))
    return context
