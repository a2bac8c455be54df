"""
Logging helpers shared by the pipeline and the CLI.
"""

from __future__ import annotations

import json
import logging
from typing import Any

_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    What it does:
    - Configures root logging once for CLI runs.

    Behavior:
    - Unknown level names fall back to INFO.
    - Playwright's own loggers are kept at WARNING so traces stay readable.
    """
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    logging.basicConfig(level=resolved, format=_FORMAT)
    logging.getLogger("playwright").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))
