"""Change-sets from GitHub pull requests over the REST API."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterator, Optional, Protocol, cast

import requests

from ..config import BuildConfig
from ..exceptions import ErrorCode, RetrievalError
from ..graph.builder import ChangeSetItem
from ..graph.models import ChangeSet, ChangeSetEdit, FailedChangeSet, Granularity
from ..logging_config import get_logger

logger = get_logger(__name__)


class _SessionWithGet(Protocol):
    def get(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        timeout: Optional[int] = None,
    ) -> Any: ...


def parse_repo_slug(slug: str) -> tuple[str, str]:
    """Split ``owner/repo`` (or a github.com URL) into its two parts."""
    normalized = slug.strip().rstrip("/")
    for prefix in ("https://github.com/", "http://github.com/", "github.com/"):
        if normalized.startswith(prefix):
            normalized = normalized[len(prefix):]
            break
    if normalized.endswith(".git"):
        normalized = normalized[: -len(".git")]
    parts = normalized.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"Expected OWNER/REPO, got: {slug}")
    return parts[0], parts[1]


class GitHubPullRequestSource:
    """Lists pull requests and yields their file lists as change-sets.

    Under change-set granularity each pull request is one ChangeSet keyed
    by its number. Under sub-change granularity each of its commits is one
    ChangeSet carrying the pull request number and the commit sha.

    A pull request whose files cannot be fetched becomes a FailedChangeSet;
    a failure to list pull requests at all raises RetrievalError.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        config: Optional[BuildConfig] = None,
        session: Optional[_SessionWithGet] = None,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.config = config or BuildConfig()
        self.granularity = Granularity(self.config.granularity)
        self._session: _SessionWithGet = cast(_SessionWithGet, session or requests.Session())

    @property
    def repo_url(self) -> str:
        return f"{self.config.github_api_url.rstrip('/')}/repos/{self.owner}/{self.repo}"

    def change_sets(self) -> Iterator[ChangeSetItem]:
        pulls = self.list_pull_requests()
        logger.info("Fetching files for %d pull request(s) of %s/%s", len(pulls), self.owner, self.repo)

        workers = min(self.config.fetch_workers, max(1, len(pulls)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            for items in pool.map(self._collect, pulls):
                yield from items

    def list_pull_requests(self) -> list[dict[str, Any]]:
        params = {
            "state": self.config.pull_state,
            "sort": self.config.pull_sort,
            "direction": self.config.pull_direction,
            "per_page": self.config.per_page,
        }
        try:
            pulls = self._get_paginated(
                f"{self.repo_url}/pulls", params, max_pages=self.config.max_pages
            )
        except RetrievalError as exc:
            raise RetrievalError(
                f"Cannot list pull requests for {self.owner}/{self.repo}: {exc.message}",
                code=ErrorCode.CG101,
                context=exc.context,
                recoverable=False,
                recovery_hint="Check the repository name and GITHUB_TOKEN",
            ) from exc

        pulls = [p for p in pulls if isinstance(p, dict) and isinstance(p.get("number"), int)]
        if self.config.max_change_sets is not None:
            pulls = pulls[: self.config.max_change_sets]
        return pulls

    def fetch_files(self, number: int) -> list[ChangeSetEdit]:
        entries = self._get_paginated(
            f"{self.repo_url}/pulls/{number}/files", {"per_page": self.config.per_page}
        )
        return _edits_from_files(entries)

    def fetch_commits(self, number: int) -> list[str]:
        entries = self._get_paginated(
            f"{self.repo_url}/pulls/{number}/commits", {"per_page": self.config.per_page}
        )
        return [e["sha"] for e in entries if isinstance(e, dict) and isinstance(e.get("sha"), str)]

    def fetch_commit_files(self, sha: str) -> list[ChangeSetEdit]:
        body = self._get_json(f"{self.repo_url}/commits/{sha}", None)
        if not isinstance(body, dict):
            raise RetrievalError(
                f"Unexpected payload for commit {sha}",
                code=ErrorCode.CG100,
                context={"sha": sha},
            )
        return _edits_from_files(body.get("files") or [])

    # ── internals ──────────────────────────────────────────────────

    def _collect(self, pull: dict[str, Any]) -> list[ChangeSetItem]:
        number = pull["number"]
        title = pull.get("title") or ""
        try:
            if self.granularity is Granularity.CHANGE_SET:
                return [ChangeSet(change_id=number, edits=tuple(self.fetch_files(number)), title=title)]
            return [
                ChangeSet(
                    change_id=number,
                    edits=tuple(self.fetch_commit_files(sha)),
                    sub_change_id=sha,
                    title=title,
                )
                for sha in self.fetch_commits(number)
            ]
        except RetrievalError as exc:
            logger.debug("Pull request #%s: %s", number, exc)
            return [FailedChangeSet(change_id=number, reason=exc.message)]

    def _get_paginated(
        self, url: str, params: Optional[dict[str, Any]], max_pages: Optional[int] = None
    ) -> list[Any]:
        results: list[Any] = []
        next_url: Optional[str] = url
        pages = 0
        while next_url is not None:
            response = self._request(next_url, params)
            body = self._decode(response, next_url)
            if not isinstance(body, list):
                raise RetrievalError(
                    f"Expected a list from {next_url}",
                    code=ErrorCode.CG100,
                    context={"url": next_url},
                )
            results.extend(body)
            pages += 1
            if max_pages is not None and pages >= max_pages:
                break
            links = getattr(response, "links", None) or {}
            next_url = links.get("next", {}).get("url")
            # The next link already carries the query string
            params = None
        return results

    def _get_json(self, url: str, params: Optional[dict[str, Any]]) -> Any:
        return self._decode(self._request(url, params), url)

    def _request(self, url: str, params: Optional[dict[str, Any]]) -> Any:
        try:
            response = self._session.get(
                url,
                params=params,
                headers=self.config.github_headers,
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            raise RetrievalError(
                f"Request to {url} failed: {e}",
                code=ErrorCode.CG100,
                context={"url": url},
            ) from e

        status = response.status_code
        if status in (403, 429) and _rate_limited(response):
            raise RetrievalError(
                "GitHub rate limit exhausted",
                code=ErrorCode.CG102,
                context={"url": url, "reset": response.headers.get("X-RateLimit-Reset", "")},
                recovery_hint="Set GITHUB_TOKEN or wait for the limit to reset",
            )
        if status != 200:
            raise RetrievalError(
                f"GET {url} returned {status}",
                code=ErrorCode.CG100,
                context={"url": url, "status": status},
            )
        return response

    @staticmethod
    def _decode(response: Any, url: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise RetrievalError(
                f"Invalid JSON from {url}",
                code=ErrorCode.CG100,
                context={"url": url},
            ) from e


def _rate_limited(response: Any) -> bool:
    headers = getattr(response, "headers", None) or {}
    return headers.get("X-RateLimit-Remaining") == "0" or response.status_code == 429


def _edits_from_files(entries: list[Any]) -> list[ChangeSetEdit]:
    edits: list[ChangeSetEdit] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        path = entry.get("filename")
        if not isinstance(path, str) or not path:
            continue
        if entry.get("status") == "removed":
            continue
        previous = entry.get("previous_filename")
        edits.append(
            ChangeSetEdit(path=path, previous_path=previous if isinstance(previous, str) else None)
        )
    return edits
