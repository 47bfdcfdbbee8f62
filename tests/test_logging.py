"""Tests for logging setup."""

import logging

import pytest

from schema2orm.utils.logging import ROOT_LOGGER_NAME, get_logger, setup_logging


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


def test_get_logger_is_namespaced():
    assert get_logger("tests.module").name == "schema2orm.tests.module"
    assert get_logger("schema2orm.core").name == "schema2orm.core"


def test_setup_logging_writes_to_file(tmp_path):
    log_file = tmp_path / "run.log"

    logger = setup_logging(level="DEBUG", log_file=str(log_file))
    get_logger("tests").debug("hello")

    assert logger.level == logging.DEBUG
    assert "hello" in log_file.read_text()


def test_reconfiguring_closes_previous_handlers(tmp_path):
    first = setup_logging(log_file=str(tmp_path / "first.log"))
    file_handler = next(h for h in first.handlers if isinstance(h, logging.FileHandler))

    second = setup_logging(level="WARNING")

    assert file_handler not in second.handlers
    assert file_handler.stream is None
    assert len(second.handlers) == 1
    assert second.level == logging.WARNING
