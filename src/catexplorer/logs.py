"""Logging setup for the catexplorer CLI."""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_HANDLER_NAME = "catexplorer-stderr"


def configure_logging(level: str | int = "INFO") -> None:
    """Attach one stderr handler to the ``catexplorer`` logger hierarchy.

    Repeated calls replace the handler so it writes to the current ``sys.stderr``.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            resolved = logging.INFO
    else:
        resolved = level

    root = logging.getLogger("catexplorer")
    root.setLevel(resolved)
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)
    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)
    # botocore is chatty at DEBUG
    logging.getLogger("botocore").setLevel(max(resolved, logging.WARNING))
