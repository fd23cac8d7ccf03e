"""
Utility module for logging configuration.

This module configures the logging system for the repository catalogue.
"""

import logging
import sys


def setup_logging(level=logging.INFO):
    """
    Configure logging for the repository catalogue.

    Log records go to stderr so that JSON results printed on stdout stay parseable.

    Args:
        level (int | str): Logging level (default: logging.INFO)

    Returns:
        logging.Logger: The configured package logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    # Create logger
    logger = logging.getLogger("repocatalog")
    logger.setLevel(level)

    # Reconfiguring only adjusts the level of the existing handler
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    # Create console handler and set level
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)

    # Create formatter
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Add formatter to console handler
    console_handler.setFormatter(formatter)

    # Add console handler to logger
    logger.addHandler(console_handler)

    return logger
