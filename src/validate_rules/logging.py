"""Logging setup for validate-rules."""

import logging

from rich.console import Console
from rich.logging import RichHandler


LOGGER_NAME = "validate_rules"


def setup_logging(level: str = "WARNING") -> None:
    """
    Configure the package logger.

    Log records go to stderr so they never mix with the validation
    summary printed on stdout.
    """
    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
    root.handlers.clear()

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
