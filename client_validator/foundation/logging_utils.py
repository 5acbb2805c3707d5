"""Operational logger setup."""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def setup_operational_logger(
    run_id: str,
    *,
    level: str = "INFO",
    log_dir: str | None = None,
) -> tuple[logging.Logger, str | None]:
    """
    Route the `validatorkit` and `client_validator` loggers to stderr and,
    when `log_dir` is given, to a UTF-8 file `<run_id>_oplog.log` at DEBUG.
    """

    formatter = logging.Formatter(LOG_FORMAT)
    log_file: str | None = None

    handlers: list[logging.Handler] = []
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(logging.getLevelName(level.upper()))
    stream_handler.setFormatter(formatter)
    handlers.append(stream_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, f"{run_id}_oplog.log")
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    for name in ("validatorkit", "client_validator"):
        target = logging.getLogger(name)
        for handler in list(target.handlers):
            target.removeHandler(handler)
            handler.close()
        target.setLevel(logging.DEBUG)
        for handler in handlers:
            target.addHandler(handler)
        target.propagate = False

    logger = logging.getLogger("client_validator")
    logger.info("Operational logging initialized for run %s", run_id)
    if log_file:
        logger.debug("Operational log file: %s", log_file)
    return logger, log_file
