"""
Logging setup for agent-builder.

Library modules log through ``logging.getLogger(__name__)``; the CLI calls
``setup_logging`` once per invocation to route the ``agent_builder``
namespace to stderr through rich.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "agent_builder"


def setup_logging(level: str = "WARNING") -> logging.Logger:
    """
    Configure the package logger. Safe to call more than once.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR)

    Returns:
        The ``agent_builder`` logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=level.upper() == "DEBUG",
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level.upper())
    logger.propagate = False
    return logger
