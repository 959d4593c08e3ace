"""Logging setup for the copilot server process."""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the "copilot" logger.

    Safe to call more than once; only the level changes on repeat calls.
    """
    root = logging.getLogger("copilot")
    root.setLevel(level.upper() if isinstance(level, str) else level)

    if not any(getattr(h, "_copilot_handler", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._copilot_handler = True
        root.addHandler(handler)
