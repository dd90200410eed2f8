"""Logging configuration for the aecflow CLI."""

from __future__ import annotations

import logging
import os


def setup_logging(
    logger_name: str = "aecflow",
    log_file: str | None = None,
    verbose: bool = False,
) -> logging.Logger:
    """
    Configure dual-handler logging (console + file).

    Args:
        logger_name: Root logger for the package (child modules inherit handlers)
        log_file: Path to log file (None for no file logging)
        verbose: Enable DEBUG level on console (default WARNING)

    Returns:
        Configured logger instance
    """
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(
        logging.Formatter("%(levelname)-8s | %(name)s | %(message)s")
    )

    file_handler = None
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)
    # Re-running setup (tests, repeated CLI invocations) must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.addHandler(console_handler)
    if file_handler:
        logger.addHandler(file_handler)

    for noisy in ["asyncio", "httpx", "httpcore", "urllib3"]:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger
