"""Logging setup for the transcriber CLI.

Log records go to stderr through rich so they never mix with a transcript
printed on stdout.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

# Third-party loggers that are chatty at DEBUG
_NOISY_LOGGERS = ("huggingface_hub", "urllib3", "filelock")


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    no_color: bool = False,
) -> None:
    """Configure logging for the application.

    Args:
        verbose: DEBUG level, including state transitions.
        quiet: Only critical records.
        no_color: Plain, uncolored log output.
    """
    if verbose:
        log_level = logging.DEBUG
    elif quiet:
        log_level = logging.CRITICAL
    else:
        log_level = logging.WARNING

    handler = RichHandler(
        console=Console(stderr=True, no_color=no_color, highlight=not no_color),
        show_time=verbose,
        show_path=False,
        rich_tracebacks=verbose,
    )
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="%H:%M:%S",
        handlers=[handler],
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging configured: level=%s", logging.getLevelName(log_level)
    )
