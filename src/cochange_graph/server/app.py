"""Starlette application serving snapshot files verbatim."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import FileResponse, PlainTextResponse, Response
from starlette.routing import Route

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT = "cochange.json"


class SnapshotDirectory:
    """Resolves request names to snapshot files under one root.

    ``root`` may be a directory of ``*.json`` snapshots or a single file.
    Files are only ever opened for reading.
    """

    def __init__(self, root: Path, default_name: str = DEFAULT_SNAPSHOT) -> None:
        root = Path(root).resolve()
        if root.is_file():
            self.directory = root.parent
            self.default_name = root.name
            self.only: Optional[str] = root.name
        else:
            self.directory = root
            self.default_name = default_name
            self.only = None

    def resolve(self, name: str) -> Optional[Path]:
        if not name.endswith(".json") or "/" in name or "\\" in name or name.startswith("."):
            return None
        if self.only is not None and name != self.only:
            return None
        candidate = (self.directory / name).resolve()
        if candidate.parent != self.directory or not candidate.is_file():
            return None
        return candidate

    def default(self) -> Optional[Path]:
        path = self.resolve(self.default_name)
        if path is not None:
            return path
        snapshots = sorted(self.directory.glob("*.json")) if self.only is None else []
        if len(snapshots) == 1:
            return snapshots[0]
        return None


def create_app(root: Path, default_name: str = DEFAULT_SNAPSHOT) -> Starlette:
    """Build the Starlette application serving snapshots under *root*.

    Routes:
        GET /             the default snapshot
        GET /<name>.json  a named snapshot
    Anything else is 404.
    """
    snapshots = SnapshotDirectory(root, default_name)

    def _file(path: Optional[Path]) -> Response:
        if path is None:
            return PlainTextResponse("Not Found", status_code=404)
        return FileResponse(path, media_type="application/json")

    async def index(request: Request) -> Response:
        return _file(snapshots.default())

    async def snapshot(request: Request) -> Response:
        name = request.path_params["name"]
        path = snapshots.resolve(name)
        if path is None:
            logger.debug("No snapshot for %s", name)
        return _file(path)

    routes = [
        Route("/", index, methods=["GET"]),
        Route("/{name}", snapshot, methods=["GET"]),
    ]
    return Starlette(routes=routes)
