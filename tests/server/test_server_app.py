"""Tests for the read-only snapshot server."""

import json

import pytest
from starlette.testclient import TestClient

from cochange_graph.server.app import create_app

SNAPSHOT = {"nodes": [{"id": 0, "path": "a.py"}], "edges": []}


@pytest.fixture
def snapshot_dir(tmp_path):
    (tmp_path / "cochange.json").write_text(json.dumps(SNAPSHOT))
    (tmp_path / "other.json").write_text('{"nodes": [], "edges": []}')
    (tmp_path / "notes.txt").write_text("hello")
    return tmp_path


class TestSnapshotServer:

    def test_index_serves_default_snapshot(self, snapshot_dir):
        client = TestClient(create_app(snapshot_dir))
        response = client.get("/")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert response.json() == SNAPSHOT

    def test_named_snapshot_served_verbatim(self, snapshot_dir):
        client = TestClient(create_app(snapshot_dir))
        response = client.get("/other.json")
        assert response.status_code == 200
        assert response.text == '{"nodes": [], "edges": []}'

    @pytest.mark.parametrize("path", ["/missing.json", "/notes.txt", "/a/b.json", "/.hidden.json"])
    def test_unknown_paths_404(self, snapshot_dir, path):
        client = TestClient(create_app(snapshot_dir))
        assert client.get(path).status_code == 404

    def test_traversal_rejected(self, snapshot_dir):
        client = TestClient(create_app(snapshot_dir))
        assert client.get("/..%2Fsecret.json").status_code == 404

    def test_single_file_root(self, snapshot_dir):
        client = TestClient(create_app(snapshot_dir / "other.json"))
        assert client.get("/").json() == {"nodes": [], "edges": []}
        assert client.get("/other.json").status_code == 200
        assert client.get("/cochange.json").status_code == 404

    def test_index_falls_back_to_only_snapshot(self, tmp_path):
        (tmp_path / "run.json").write_text("{}")
        client = TestClient(create_app(tmp_path))
        assert client.get("/").status_code == 200

    def test_index_404_without_snapshot(self, tmp_path):
        client = TestClient(create_app(tmp_path))
        assert client.get("/").status_code == 404

    def test_serving_does_not_modify_file(self, snapshot_dir):
        before = (snapshot_dir / "cochange.json").read_bytes()
        TestClient(create_app(snapshot_dir)).get("/cochange.json")
        assert (snapshot_dir / "cochange.json").read_bytes() == before
