import logging
from pathlib import Path

import pytest

from client_validator.foundation.logging_utils import setup_operational_logger


@pytest.fixture
def restore_loggers():
    saved = {
        name: (list(logging.getLogger(name).handlers), logging.getLogger(name).propagate)
        for name in ("validatorkit", "client_validator")
    }
    yield
    for name, (handlers, propagate) in saved.items():
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        for handler in handlers:
            logger.addHandler(handler)
        logger.propagate = propagate


def test_operational_log_file_captures_kernel_debug_lines(tmp_path: Path, restore_loggers):
    _logger, log_file = setup_operational_logger("run_1", level="WARNING", log_dir=str(tmp_path))

    logging.getLogger("validatorkit.runner").debug("Checked kv.put: PASS")

    assert log_file is not None
    content = Path(log_file).read_text(encoding="utf-8")
    assert "Operational logging initialized for run run_1" in content
    assert "| DEBUG | Checked kv.put: PASS" in content


def test_setup_is_idempotent(tmp_path: Path, restore_loggers):
    setup_operational_logger("run_a", log_dir=str(tmp_path))
    setup_operational_logger("run_b")

    handlers = logging.getLogger("validatorkit").handlers
    assert len(handlers) == 1
    assert logging.getLogger("client_validator").propagate is False
