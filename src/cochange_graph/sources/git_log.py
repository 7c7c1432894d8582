"""Change-sets from a local clone's git log, one per commit."""

import re
import subprocess
from pathlib import Path
from typing import Iterator, Optional

from ..exceptions import ErrorCode, RetrievalError
from ..graph.models import ChangeSet, ChangeSetEdit
from ..logging_config import get_logger

logger = get_logger(__name__)


class GitLogSource:
    """Parse ``git log --name-status -M`` into change-sets, oldest first.

    Each commit becomes one ChangeSet whose change id and sub-change id are
    both the commit sha, so either granularity can consume it.
    """

    def __init__(self, repo_path: str, max_commits: int = 5000):
        self.repo_path = str(Path(repo_path).resolve())
        self.max_commits = max_commits

    def change_sets(self) -> Iterator[ChangeSet]:
        if not self._is_git_repo():
            raise RetrievalError(
                f"Not a git repository: {self.repo_path}",
                code=ErrorCode.CG103,
                context={"path": self.repo_path},
                recoverable=False,
                recovery_hint="Point --git at a clone with git on PATH",
            )
        raw = self._run_git_log()
        yield from self.parse_log(raw)

    def _is_git_repo(self) -> bool:
        try:
            result = subprocess.run(
                ["git", "-C", self.repo_path, "rev-parse", "--git-dir"],
                capture_output=True,
                text=True,
                timeout=5,
            )
            return result.returncode == 0
        except (FileNotFoundError, subprocess.TimeoutExpired):
            return False

    # Maximum git log output size (50MB) to prevent OOM on huge repos
    _MAX_OUTPUT_BYTES = 50 * 1024 * 1024

    def _run_git_log(self) -> str:
        cmd = [
            "git",
            "-C",
            self.repo_path,
            "log",
            "--reverse",
            "--format=%H|%at|%ae|%s",
            "--name-status",
            "-M",
            f"-n{self.max_commits}",
        ]
        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError as e:
            raise RetrievalError(
                "git executable not found",
                code=ErrorCode.CG103,
                recoverable=False,
            ) from e

        try:
            chunks = []
            total_size = 0
            stdout = proc.stdout
            assert stdout is not None
            while True:
                chunk = stdout.read(1024 * 1024)
                if not chunk:
                    break
                total_size += len(chunk)
                if total_size > self._MAX_OUTPUT_BYTES:
                    logger.warning(
                        "git log output exceeded %dMB limit, truncating",
                        self._MAX_OUTPUT_BYTES // (1024 * 1024),
                    )
                    proc.kill()
                    break
                chunks.append(chunk)

            proc.wait(timeout=30)
            if proc.returncode != 0 and proc.returncode != -9:  # -9 = killed
                stderr = proc.stderr.read() if proc.stderr else ""
                raise RetrievalError(
                    f"git log failed: {stderr.strip()}",
                    code=ErrorCode.CG104,
                    context={"path": self.repo_path, "returncode": proc.returncode},
                    recoverable=False,
                )
            return "".join(chunks)
        except subprocess.TimeoutExpired as e:
            proc.kill()
            raise RetrievalError(
                "git log timed out",
                code=ErrorCode.CG104,
                context={"path": self.repo_path},
                recoverable=False,
            ) from e
        finally:
            if proc.stdout:
                proc.stdout.close()
            if proc.stderr:
                proc.stderr.close()

    # Matches: 40-char hex hash | unix timestamp | author email | subject
    _HEADER_RE = re.compile(r"^[0-9a-f]{40}\|\d+\|[^|]*\|.*$")

    @classmethod
    def parse_log(cls, raw: str) -> list[ChangeSet]:
        """Parse ``--name-status`` output into change-sets.

        Commits without file entries (merges) are dropped. Deleted files
        are left out; renames (``R<score>``) carry their old path.
        """
        change_sets: list[ChangeSet] = []
        current_sha: Optional[str] = None
        current_subject = ""
        current_edits: list[ChangeSetEdit] = []

        def flush() -> None:
            if current_sha and current_edits:
                change_sets.append(
                    ChangeSet(
                        change_id=current_sha,
                        edits=tuple(current_edits),
                        sub_change_id=current_sha,
                        title=current_subject,
                    )
                )

        for line in raw.split("\n"):
            line = line.rstrip("\r")
            if not line.strip():
                continue

            if cls._HEADER_RE.match(line):
                flush()
                parts = line.split("|", 3)
                current_sha = parts[0]
                current_subject = parts[3] if len(parts) > 3 else ""
                current_edits = []
                continue

            if current_sha is None:
                continue
            edit = cls._parse_status_line(line)
            if edit is not None:
                current_edits.append(edit)

        flush()
        return change_sets

    @staticmethod
    def _parse_status_line(line: str) -> Optional[ChangeSetEdit]:
        parts = line.split("\t")
        status = parts[0].strip()
        if not status:
            return None
        if status.startswith("R") and len(parts) >= 3:
            return ChangeSetEdit(path=parts[2], previous_path=parts[1])
        if status.startswith("C") and len(parts) >= 3:
            # A copy is a new file next to its source
            return ChangeSetEdit(path=parts[2])
        if status.startswith("D"):
            return None
        if len(parts) >= 2:
            return ChangeSetEdit(path=parts[1])
        logger.debug("Ignoring unparseable git log line: %r", line)
        return None
