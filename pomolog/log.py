from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = "WARNING") -> None:
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper() or "WARNING")
        if not isinstance(resolved, int):
            resolved = logging.WARNING
    else:
        resolved = level
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger("pomolog").setLevel(resolved)
