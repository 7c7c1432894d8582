"""Configuration loading and management for cochange-graph.

Configuration sources are merged in priority order:
    1. Defaults (defined in BuildConfig)
    2. Global config (~/.cochange-graph.toml)
    3. Project config (./cochange-graph.toml)
    4. Explicit config file (--config)
    5. Environment variables (COCHANGE_* prefix, plus GITHUB_TOKEN)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(granularity="sub_change", verbose=True)
    >>> config.granularity
    'sub_change'
    >>> config.verbosity
    'verbose'
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, get_type_hints

from .exceptions import CoChangeGraphError, InvalidConfigError, InvalidPathError


_GRANULARITIES = ("change_set", "sub_change")
_PULL_STATES = ("open", "closed", "all")
_SORT_KEYS = ("created", "updated", "popularity", "long-running")
_DIRECTIONS = ("asc", "desc")
_VERBOSITIES = ("quiet", "normal", "verbose")


@dataclass(frozen=True)
class BuildConfig:
    """Configuration for one graph-building run.

    Attributes:
        Graph construction:
            granularity: Unit of co-occurrence, "change_set" (one pull request)
                or "sub_change" (one commit inside a pull request)
            max_files_per_change_set: Skip change-sets touching more files than
                this (bulk reformats, vendoring). None disables the filter.

        GitHub retrieval:
            github_api_url: Base URL of the REST API
            github_token: Bearer token (read from GITHUB_TOKEN when unset)
            pull_state: Which pull requests to list
            pull_sort / pull_direction: Listing order; oldest first replays
                renames in the order they happened
            per_page: Page size for listing endpoints (GitHub caps at 100)
            max_pages: Upper bound on pull-request listing pages
            max_change_sets: Stop after this many pull requests (None = all)
            fetch_workers: Concurrent per-pull-request file fetches
            request_timeout: Seconds per HTTP request

        Local git retrieval:
            git_max_commits: Maximum commits read from git log

        Output:
            output_path: Where the snapshot JSON is written
            indent: JSON indentation (None for compact output)

        Serving:
            serve_host / serve_port: Bind address of the snapshot server

        Logging:
            verbosity: quiet / normal / verbose
            log_file: Optional file receiving a copy of the log
    """

    # Graph construction
    granularity: str = "change_set"
    max_files_per_change_set: Optional[int] = None

    # GitHub retrieval
    github_api_url: str = "https://api.github.com"
    github_token: Optional[str] = None
    pull_state: str = "closed"
    pull_sort: str = "created"
    pull_direction: str = "asc"
    per_page: int = 100
    max_pages: int = 10
    max_change_sets: Optional[int] = None
    fetch_workers: int = 4
    request_timeout: int = 10

    # Local git retrieval
    git_max_commits: int = 5000

    # Output
    output_path: str = "cochange.json"
    indent: Optional[int] = 2

    # Serving
    serve_host: str = "127.0.0.1"
    serve_port: int = 7878

    # Logging
    verbosity: str = "normal"
    log_file: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.granularity not in _GRANULARITIES:
            raise ValueError(f"granularity must be one of {', '.join(_GRANULARITIES)}")
        if self.max_files_per_change_set is not None and self.max_files_per_change_set < 2:
            raise ValueError("max_files_per_change_set must be at least 2")

        if self.pull_state not in _PULL_STATES:
            raise ValueError(f"pull_state must be one of {', '.join(_PULL_STATES)}")
        if self.pull_sort not in _SORT_KEYS:
            raise ValueError(f"pull_sort must be one of {', '.join(_SORT_KEYS)}")
        if self.pull_direction not in _DIRECTIONS:
            raise ValueError("pull_direction must be 'asc' or 'desc'")
        if not 1 <= self.per_page <= 100:
            raise ValueError("per_page must be between 1 and 100")
        if self.max_pages < 1:
            raise ValueError("max_pages must be at least 1")
        if self.max_change_sets is not None and self.max_change_sets < 1:
            raise ValueError("max_change_sets must be at least 1")
        if self.fetch_workers < 1:
            raise ValueError("fetch_workers must be at least 1")
        if self.request_timeout < 1:
            raise ValueError("request_timeout must be at least 1")

        if self.git_max_commits < 1:
            raise ValueError("git_max_commits must be at least 1")

        if not self.output_path:
            raise ValueError("output_path must not be empty")
        if self.indent is not None and self.indent < 0:
            raise ValueError("indent must be non-negative")

        if not 0 < self.serve_port < 65536:
            raise ValueError("serve_port must be between 1 and 65535")

        if self.verbosity not in _VERBOSITIES:
            raise ValueError(f"verbosity must be one of {', '.join(_VERBOSITIES)}")

    @property
    def github_headers(self) -> dict[str, str]:
        """Request headers for the GitHub REST API."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.github_token:
            headers["Authorization"] = f"Bearer {self.github_token}"
        return headers


def load_config(config_file: Optional[Path] = None, **overrides) -> BuildConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options never mask file values.

    Returns:
        Validated BuildConfig instance

    Raises:
        CoChangeGraphError: If a config file is invalid or missing, or a
            value fails validation
    """
    merged: dict = {}

    global_config = Path.home() / ".cochange-graph.toml"
    if global_config.exists():
        try:
            merged.update(_load_toml_file(global_config))
        except Exception as e:
            raise CoChangeGraphError(f"Invalid global config '{global_config}': {e}")

    project_config = Path.cwd() / "cochange-graph.toml"
    if project_config.exists():
        try:
            merged.update(_load_toml_file(project_config))
        except Exception as e:
            raise CoChangeGraphError(f"Invalid project config '{project_config}': {e}")

    if config_file is not None:
        if not config_file.exists():
            raise InvalidPathError(config_file, "config file not found")
        try:
            merged.update(_load_toml_file(config_file))
        except Exception as e:
            raise CoChangeGraphError(f"Invalid config file '{config_file}': {e}")

    merged.update(_load_env_vars())

    # Convert verbosity boolean flags to string
    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    merged.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return BuildConfig(**merged)
    except (TypeError, ValueError) as e:
        raise CoChangeGraphError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from COCHANGE_* environment variables.

    Every BuildConfig field maps to ``COCHANGE_<FIELD_NAME>``; for example
    ``COCHANGE_GRANULARITY=sub_change`` or ``COCHANGE_FETCH_WORKERS=8``.
    ``GITHUB_TOKEN`` fills ``github_token`` when COCHANGE_GITHUB_TOKEN is unset.

    Returns:
        Dict of field_name -> parsed_value for any variables found.
    """
    type_hints = get_type_hints(BuildConfig)

    result: dict[str, Any] = {}

    for field_name in BuildConfig.__dataclass_fields__:
        env_key = f"COCHANGE_{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint, field_name)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))

    if "github_token" not in result:
        token = os.environ.get("GITHUB_TOKEN")
        if token:
            result["github_token"] = token

    return result


def _parse_env_value(value: str, type_hint: Any, field_name: str) -> Any:
    """Parse environment variable string to the correct type.

    Args:
        value: Raw string from environment
        type_hint: Type annotation from dataclass
        field_name: Field name for error messages

    Returns:
        Parsed value or None if the type is not supported

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    # Optional[X] is Union[X, None]; unwrap to X
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        CoChangeGraphError: If no TOML parser is available
        Exception: If TOML parsing fails
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise CoChangeGraphError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        return tomllib.load(f)
