"""Logging for rotation runs.

Progress reaches the operator through rich console output. Log records are the
diagnostic trail: the ``cluster_rotator`` logger carries every retry attempt at
DEBUG, which only shows on stderr with ``--verbose`` and always lands in the log
file when one is given. Third-party libraries are kept at WARNING either way.
"""

import logging
import sys
from pathlib import Path

PACKAGE_LOGGER = "cluster_rotator"
LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Configure logging for a rotation run.

    Args:
        verbose: Show this package's DEBUG records (retry attempts) on stderr
        log_file: Optional path receiving the full DEBUG trail
    """
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.WARNING)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(logging.DEBUG if verbose or log_file else logging.INFO)

    if log_file:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
        except OSError as e:
            package_logger.warning(f"Cannot write log file {log_file}: {e}")
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Logger for a module of this package, e.g. ``get_logger(__name__)``."""
    return logging.getLogger(name)
