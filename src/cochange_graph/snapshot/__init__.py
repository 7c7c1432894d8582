"""Snapshot export/import and the JSON file sink."""

from .codec import Snapshot, SnapshotEdge, SnapshotNode, decode, export, from_json, to_json
from .writer import read_snapshot, write_snapshot

__all__ = [
    "Snapshot",
    "SnapshotNode",
    "SnapshotEdge",
    "export",
    "decode",
    "to_json",
    "from_json",
    "write_snapshot",
    "read_snapshot",
]
