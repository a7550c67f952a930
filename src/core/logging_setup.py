"""Logging configuration for the cache server.

Sets up standard Python logging on the root logger. Output goes to
stderr because stdout carries the MCP stdio transport.
"""

from __future__ import annotations

import logging
import sys
from typing import Union

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Union[int, str] = logging.INFO, log_format: str = DEFAULT_LOG_FORMAT) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers attached to the root logger
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(log_format))
    root_logger.addHandler(handler)

    logging.getLogger(__name__).debug(f"Logging configured. Level={logging.getLevelName(level)}")
