from __future__ import annotations

import logging
from io import StringIO

from cardvault.logging.init import (
    APP_LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    reset_logging,
    set_debug,
    setup_logging,
)


def test_setup_logging_creates_single_handler():
    reset_logging()
    logger = setup_logging()
    assert logger.name == APP_LOGGER_NAME
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_setup_logging_is_idempotent():
    reset_logging()
    first = setup_logging()
    assert setup_logging() is first
    assert get_logger() is first
    assert len(first.handlers) == 1


def test_labeled_prefixes():
    reset_logging()
    stream = StringIO()
    logger = setup_logging(stream)
    logger.info("parsed")
    logger.debug("hidden at INFO")
    logger.warning("careful")
    logger.error("broken")
    log_summary("collection=1 rows=0")
    assert stream.getvalue().splitlines() == [
        "INFO parsed",
        "WARN careful",
        "ERROR broken",
        "SUMMARY collection=1 rows=0",
    ]


def test_module_loggers_route_through_app_logger():
    reset_logging()
    stream = StringIO()
    setup_logging(stream)
    logging.getLogger("cardvault.services.importer").warning("from child")
    assert stream.getvalue() == "WARN from child\n"


def test_debug_mode_tags_module():
    reset_logging()
    stream = StringIO()
    logger = setup_logging(stream)
    set_debug(logger)
    logging.getLogger("cardvault.db.repositories").debug("snapshot loaded")
    logger.debug("top level")
    assert logger.level == logging.DEBUG
    assert stream.getvalue().splitlines() == [
        "DEBUG [db.repositories] snapshot loaded",
        "DEBUG top level",
    ]


def test_exception_traceback_appended():
    reset_logging()
    stream = StringIO()
    logger = setup_logging(stream)
    try:
        raise ValueError("bad cell")
    except ValueError:
        logger.exception("row 4 failed")
    lines = stream.getvalue().splitlines()
    assert lines[0] == "ERROR row 4 failed"
    assert lines[-1] == "ValueError: bad cell"


def test_reset_detaches_handler():
    reset_logging()
    logger = setup_logging(StringIO())
    reset_logging()
    assert logger.handlers == []
    assert logging.getLevelName(SUMMARY_LEVEL) == "SUMMARY"
