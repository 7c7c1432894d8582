"""Snapshot file sink."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from ..exceptions import ErrorCode, PersistenceError
from ..logging_config import get_logger
from .codec import Snapshot, from_json, to_json

logger = get_logger(__name__)


def write_snapshot(
    snapshot: Snapshot, path: Union[str, Path], indent: Optional[int] = 2
) -> Path:
    """Write ``snapshot`` as JSON, replacing ``path`` atomically.

    Raises:
        PersistenceError: the file could not be written. Not recoverable:
            the snapshot is the run's only product.
    """
    target = Path(path)
    body = to_json(snapshot, indent=indent)
    tmp_name = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(body)
            f.write("\n")
        os.replace(tmp_name, target)
    except OSError as e:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise PersistenceError(
            f"Cannot write snapshot to {target}: {e.strerror or e}",
            code=ErrorCode.CG500,
            context={"path": str(target)},
            recoverable=False,
            recovery_hint="Check that the output directory exists and is writable",
        ) from e

    logger.info(
        "Wrote snapshot with %d nodes and %d edges to %s",
        len(snapshot["nodes"]),
        len(snapshot["edges"]),
        target,
    )
    return target


def read_snapshot(path: Union[str, Path]) -> Snapshot:
    """Load a snapshot document written by :func:`write_snapshot`."""
    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8")
    except OSError as e:
        raise PersistenceError(
            f"Cannot read snapshot {source}: {e.strerror or e}",
            code=ErrorCode.CG501,
            context={"path": str(source)},
            recoverable=False,
        ) from e
    return from_json(text)
