"""Logging configuration for the tracker process."""
import logging
import os
from typing import Optional

from .config import DEBUG_MODE, DEBUG_LOG_PATH

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def configure_logging(debug: Optional[bool] = None, debug_log_path: str = DEBUG_LOG_PATH) -> None:
    """
    Install a console handler on the package logger.

    In debug mode a second handler writes every DEBUG record to
    debug_log_path, mirroring the old debug_log() file.
    """
    if debug is None:
        debug = DEBUG_MODE

    root = logging.getLogger("focustray")
    root.setLevel(logging.DEBUG if debug else logging.INFO)

    # Reconfiguring replaces handlers instead of stacking them
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    root.addHandler(console)

    if debug:
        os.makedirs(os.path.dirname(debug_log_path) or ".", exist_ok=True)
        file_handler = logging.FileHandler(debug_log_path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        root.addHandler(file_handler)
        root.debug("Debug logging enabled: %s", debug_log_path)
