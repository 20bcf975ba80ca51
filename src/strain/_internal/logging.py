"""Logging setup for Strain.

All loggers live under the ``strain`` namespace. Engine modules obtain a
child logger through :func:`get_logger`; the CLI (or an embedding
application) calls :func:`setup_logging` once to attach a handler.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

_ROOT = "strain"
_TEXT_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"


class _JsonFormatter(logging.Formatter):
    """One JSON object per line.

    Keys: timestamp, level, logger, message, plus ``run_id`` when the
    record was logged with ``extra={"run_id": ...}``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        run_id = getattr(record, "run_id", None)
        if run_id is not None:
            entry["run_id"] = run_id
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logging(
    level: int = logging.INFO,
    *,
    json_format: bool = False,
) -> logging.Logger:
    """Configure and return the ``strain`` root logger.

    Calling this more than once only updates the level of the existing
    handler.

    Args:
        level: Logging level (e.g., ``logging.DEBUG``). Defaults to INFO.
        json_format: Emit one-line JSON records instead of text.

    Returns:
        The configured ``strain`` logger.
    """
    logger = logging.getLogger(_ROOT)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if json_format:
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)

    # Keep output off the root logger so embedding apps don't see it twice
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger("strain.<name>")``.

    Args:
        name: Dotted suffix, e.g. ``"engine.manager"``.
    """
    return logging.getLogger(f"{_ROOT}.{name}")
