"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

from rich.console import Console

from ..config import BuildConfig, load_config

console = Console()


def resolve_config(
    config: Optional[Path] = None,
    verbose: bool = False,
    quiet: bool = False,
    **overrides,
) -> BuildConfig:
    """Build configuration from CLI options; unset options fall through to files/env."""
    return load_config(config_file=config, verbose=verbose, quiet=quiet, **overrides)
