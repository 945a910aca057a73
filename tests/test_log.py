"""
Logging setup
"""

import logging

import pytest

from insights_core.log import ROOT_LOGGER_NAME, configure_logging, get_logger


@pytest.fixture
def package_logger():
    """Restore the package logger after each test."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate


class TestLogging:
    """configure_logging / get_logger"""

    @pytest.mark.unit
    def test_names_nested_under_package(self):
        assert get_logger("insights_core.health").name == "insights_core.health"
        assert get_logger("app").name == "insights_core.app"

    @pytest.mark.unit
    def test_file_handler(self, package_logger, tmp_path):
        log_file = tmp_path / "logs" / "insights.log"
        configure_logging(level=logging.DEBUG, log_file=log_file)

        get_logger("insights_core.test").info("window resolved")
        for handler in package_logger.handlers:
            handler.flush()

        content = log_file.read_text()
        assert "INFO" in content
        assert "insights_core.test | window resolved" in content

    @pytest.mark.unit
    def test_reconfigure_replaces_handlers(self, package_logger):
        configure_logging()
        configure_logging()
        assert len(package_logger.handlers) == 1
