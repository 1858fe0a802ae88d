"""
Centralized logging configuration.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .config import get_settings


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    include_timestamp: bool = True
) -> None:
    """
    Configure the root logger.

    Output goes to stderr so stdio transports (the MCP server) keep stdout
    for protocol traffic.

    Args:
        log_level: Logging level (defaults to the configured level)
        log_file: Optional log file path (defaults to the configured file)
        include_timestamp: Whether to include timestamps
    """
    settings = get_settings()
    level_str = (log_level or settings.log_level).upper()
    level = getattr(logging, level_str, logging.INFO)
    log_file = log_file or settings.log_file

    if include_timestamp:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
    else:
        formatter = logging.Formatter('%(name)s - %(levelname)s - %(message)s')

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # The MCP SDK is chatty at INFO
    logging.getLogger('mcp').setLevel(logging.WARNING)
