"""
Process-wide logging setup.

Modules log through `logging.getLogger(__name__)`; this only decides where
records go and at which level.
"""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

_handler: logging.Handler | None = None


def configure_logging(level: str = "INFO") -> None:
    global _handler
    root = logging.getLogger()
    try:
        root.setLevel(level.strip().upper())
    except ValueError:
        root.setLevel(logging.INFO)

    # The app can be built more than once per process (tests, reloads).
    if _handler is not None:
        return None

    _handler = logging.StreamHandler(sys.stdout)
    _handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
    root.addHandler(_handler)
