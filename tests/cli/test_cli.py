"""Tests for the cochange-graph command line."""

import json

import pytest
from typer.testing import CliRunner

from conftest import make_change_set

from cochange_graph import __version__
from cochange_graph.cli import app
from cochange_graph.graph import FailedChangeSet, Granularity, build_graph
from cochange_graph.snapshot import export, write_snapshot

runner = CliRunner()

HISTORY = [
    make_change_set("c1", "a.py", "b.py", sub_change_id="c1"),
    make_change_set("c2", "a.py", "b.py", "c.py", sub_change_id="c2"),
    FailedChangeSet(change_id="c3", reason="upstream lookup failed"),
]


class FakeGitLogSource:
    def __init__(self, repo_path, max_commits=5000):
        self.repo_path = repo_path

    def change_sets(self):
        return iter(HISTORY)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep user and project config files out of the tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)


@pytest.fixture
def fake_git(monkeypatch):
    monkeypatch.setattr("cochange_graph.cli.build.GitLogSource", FakeGitLogSource)


class TestBuild:

    def test_writes_snapshot(self, tmp_path, fake_git):
        out = tmp_path / "graph.json"
        result = runner.invoke(app, ["build", "--git", str(tmp_path), "-o", str(out)])
        assert result.exit_code == 0, result.output
        snapshot = json.loads(out.read_text())
        assert len(snapshot["nodes"]) == 3
        assert len(snapshot["edges"]) == 3

    def test_summary_lists_skipped(self, tmp_path, fake_git):
        result = runner.invoke(app, ["build", "--git", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "cochange.json").exists()
        assert "c3" in result.output
        assert "CG100" in result.output

    def test_requires_exactly_one_source(self, tmp_path):
        assert runner.invoke(app, ["build"]).exit_code == 2
        result = runner.invoke(app, ["build", "--git", str(tmp_path), "--github", "o/r"])
        assert result.exit_code == 2

    def test_write_failure_exits_1(self, tmp_path, fake_git):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        result = runner.invoke(
            app, ["build", "--git", str(tmp_path), "-o", str(blocker / "out.json")]
        )
        assert result.exit_code == 1
        assert "CG500" in result.output

    def test_invalid_granularity_exits_1(self, tmp_path, fake_git):
        result = runner.invoke(
            app, ["build", "--git", str(tmp_path), "--granularity", "weekly"]
        )
        assert result.exit_code == 1

    def test_sub_change_granularity(self, tmp_path, fake_git):
        result = runner.invoke(
            app, ["build", "--git", str(tmp_path), "--granularity", "sub_change"]
        )
        assert result.exit_code == 0, result.output
        snapshot = json.loads((tmp_path / "cochange.json").read_text())
        weights = sorted(e["weight"] for e in snapshot["edges"])
        assert weights == [1, 1, 2]

    def test_bad_repo_slug_exits_1(self):
        result = runner.invoke(app, ["build", "--github", "not-a-slug"])
        assert result.exit_code == 1


class TestShow:

    @pytest.fixture
    def snapshot_file(self, tmp_path):
        graph = build_graph(HISTORY).graph
        return write_snapshot(export(graph), tmp_path / "snap.json")

    def test_lists_heaviest_first(self, snapshot_file):
        result = runner.invoke(app, ["show", str(snapshot_file)])
        assert result.exit_code == 0, result.output
        lines = [line for line in result.output.splitlines() if ".py" in line]
        assert "a.py" in lines[0] and "b.py" in lines[0] and "2" in lines[0]

    def test_top_limits_rows(self, snapshot_file):
        result = runner.invoke(app, ["show", str(snapshot_file), "--top", "1"])
        lines = [line for line in result.output.splitlines() if ".py" in line]
        assert len(lines) == 1

    def test_path_filter(self, snapshot_file):
        result = runner.invoke(app, ["show", str(snapshot_file), "--path", "c.py"])
        assert result.exit_code == 0, result.output
        lines = [line for line in result.output.splitlines() if ".py" in line]
        assert len(lines) == 2
        assert all("c.py" in line for line in lines)

    def test_unknown_path(self, snapshot_file):
        result = runner.invoke(app, ["show", str(snapshot_file), "--path", "zzz.py"])
        assert result.exit_code == 1

    def test_corrupt_snapshot(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("[]")
        result = runner.invoke(app, ["show", str(bad)])
        assert result.exit_code == 1

    def test_bad_change_id_is_a_clean_error(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text(
            json.dumps(
                {
                    "nodes": [{"id": 0, "path": "a.py"}, {"id": 1, "path": "b.py"}],
                    "edges": [{"source": 0, "target": 1, "change_ids": [[1]]}],
                }
            )
        )
        result = runner.invoke(app, ["show", str(bad)])
        assert result.exit_code == 1
        assert "Error" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_sub_change_snapshot_counts_commits(self, tmp_path):
        commits = [make_change_set(7, "x.py", "y.py", sub_change_id=s) for s in ("s1", "s2", "s3")]
        graph = build_graph(commits, granularity=Granularity.SUB_CHANGE).graph
        snapshot_file = write_snapshot(export(graph), tmp_path / "commits.json")

        result = runner.invoke(app, ["show", str(snapshot_file)])
        assert result.exit_code == 0, result.output
        row = next(line for line in result.output.splitlines() if "x.py" in line)
        assert "y.py" in row
        assert "3" in row


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
