from __future__ import annotations

import logging
from io import StringIO
from unittest.mock import patch

import src.logging.init
from src.logging.init import (
    LOGGER_NAME,
    LabeledFormatter,
    get_logger,
    log_summary,
    reset_logging,
    set_debug,
    setup_logging,
)


def _capture(logger: logging.Logger) -> StringIO:
    captured_output = StringIO()
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    handler = logging.StreamHandler(captured_output)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    return captured_output


def test_setup_logging_creates_logger_with_labeled_formatter():
    reset_logging()
    logger = setup_logging()

    assert logger.name == LOGGER_NAME == "src"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], logging.StreamHandler)
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_logging_labeled_prefixes():
    reset_logging()
    logger = setup_logging()
    output = _capture(logger)

    logger.info("Test info message")
    logger.warning("Test warning message")
    logger.error("Test error message")
    logger.log(25, "Test summary message")

    lines = output.getvalue().strip().split("\n")
    assert lines == [
        "INFO Test info message",
        "WARN Test warning message",
        "ERROR Test error message",
        "SUMMARY Test summary message",
    ]


def test_module_loggers_flow_into_application_logger():
    reset_logging()
    logger = setup_logging()
    output = _capture(logger)

    logging.getLogger("src.validators.field_checks").warning("check failed")

    assert output.getvalue().strip() == "WARN check failed"


def test_setup_logging_idempotent():
    reset_logging()
    logger1 = setup_logging()
    logger2 = setup_logging()

    assert logger1 is logger2
    assert get_logger() is logger1
    assert len(logger1.handlers) == 1


def test_set_debug_lowers_logger_and_handlers():
    reset_logging()
    logger = setup_logging()
    set_debug(logger)
    assert logger.level == logging.DEBUG
    assert all(h.level == logging.DEBUG for h in logger.handlers)
    reset_logging()


def test_logging_with_progress_bar_disabled():
    reset_logging()
    with patch("sys.stdout.isatty", return_value=False):
        logger = setup_logging()
        logger.info("Test message when not TTY")
        assert logger.level == logging.INFO


def test_log_summary_convenience_function():
    reset_logging()
    logger = setup_logging()
    output = _capture(logger)

    log_summary("entities=3 rows=15 errors=4 warnings=0 info=0 anomalies=0 complete=yes elapsed_sec=0.5")

    assert output.getvalue().strip() == (
        "SUMMARY entities=3 rows=15 errors=4 warnings=0 info=0 anomalies=0 complete=yes elapsed_sec=0.5"
    )
    assert logging.getLevelName(25) == "SUMMARY"


def test_reset_logging_clears_global_state():
    setup_logging()
    reset_logging()
    assert src.logging.init._logger is None
    assert logging.getLogger(LOGGER_NAME).handlers == []
