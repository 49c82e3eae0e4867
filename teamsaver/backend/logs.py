"""Logging setup for the team saver."""

from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


def configure_logging(*, log_file: Path | None = None, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger with stderr output and an optional append-only file sink.

    Every save/restore count, restored team and missing player ends up as one line in
    ``log_file``. Pass ``force=True`` to reconfigure during tests.
    """

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=force,
    )
