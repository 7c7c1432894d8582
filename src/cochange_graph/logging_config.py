"""
Logging configuration for cochange-graph.

Routes log records through rich so warnings about skipped change-sets stay
readable next to the CLI's own output.
"""

import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

# Skipped change-sets are expected on real histories; quiet mode hides them
SKIPPED_CHANGE_SET_LEVEL = logging.WARNING

# HTTP client and server loggers that flood DEBUG output during retrieval
_CHATTY_LOGGERS = ("urllib3", "requests", "httpx", "uvicorn.access")


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure logging with rich handler for colored output.

    Args:
        verbose: Enable DEBUG level logging for cochange_graph
        quiet: Suppress all but ERROR level logging
        log_file: Optional file path to write logs to

    Returns:
        Configured logger instance for cochange_graph
    """
    # Determine log level
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    # Create rich console for logging
    console = Console(stderr=True)

    # Configure handlers; file paths and PR titles may contain [brackets]
    handlers: list[logging.Handler] = [
        RichHandler(
            console=console,
            rich_tracebacks=True,
            tracebacks_show_locals=verbose,
            markup=False,
            show_time=True,
            show_path=verbose,
        )
    ]

    # Add file handler if specified
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        handlers.append(file_handler)

    # Configure root logger; CLI commands may run several times per process
    logging.basicConfig(
        level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True
    )

    # One line per HTTP request is too much even when verbose
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))

    # Get cochange_graph logger
    logger = logging.getLogger("cochange_graph")
    logger.setLevel(level)

    return logger


def log_skipped_change_set(
    logger: logging.Logger, change_id: Union[int, str], code: str, reason: str
) -> None:
    """Report one change-set a run left out of the graph."""
    logger.log(SKIPPED_CHANGE_SET_LEVEL, "Skipping change-set %s [%s]: %s", change_id, code, reason)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Module name (e.g., 'cochange_graph.graph.builder')
              If None, returns the root cochange_graph logger

    Returns:
        Logger instance
    """
    if name is None:
        return logging.getLogger("cochange_graph")

    # Ensure name starts with cochange_graph
    if not name.startswith("cochange_graph"):
        name = f"cochange_graph.{name}"

    return logging.getLogger(name)
