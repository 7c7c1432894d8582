"""Retrieval collaborators that turn history into change-sets."""

from .git_log import GitLogSource
from .github import GitHubPullRequestSource, parse_repo_slug

__all__ = ["GitLogSource", "GitHubPullRequestSource", "parse_repo_slug"]
