"""Tests for logging setup."""

import logging

import pytest

from msync.utils import configure_third_party_loggers, setup_logging
from msync.utils.logging_config import ColoredFormatter


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    """Test setup_logging."""

    def test_console_only(self):
        """Test a single console handler at the requested level."""
        setup_logging(log_level="INFO")

        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, ColoredFormatter)

    def test_log_file(self, tmp_path):
        """Test records reach the rotating log file with their location."""
        log_file = tmp_path / "logs" / "msync.log"

        setup_logging(log_level="DEBUG", log_file=log_file, console_output=False)
        logging.getLogger("msync.test").warning("Something happened")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_file.read_text()
        assert "Something happened" in content
        assert "test_logging_config.py:" in content

    def test_unknown_level_falls_back_to_info(self):
        """Test an unknown level name does not raise."""
        setup_logging(log_level="LOUD", console_output=False)

        assert logging.getLogger().level == logging.INFO


class TestColoredFormatter:
    """Test the console formatter."""

    def test_levelname_restored(self):
        """Test coloring does not leak into other handlers."""
        formatter = ColoredFormatter(fmt="%(levelname)s %(message)s")
        record = logging.LogRecord(
            "msync", logging.ERROR, __file__, 1, "boom", None, None
        )

        output = formatter.format(record)

        assert "ERROR" in output
        assert "boom" in output
        assert record.levelname == "ERROR"


class TestThirdPartyLoggers:
    """Test configure_third_party_loggers."""

    def test_mutagen_pinned_to_warning(self):
        """Test mutagen logs below WARNING are dropped."""
        logging.getLogger("mutagen").setLevel(logging.DEBUG)

        configure_third_party_loggers()

        assert logging.getLogger("mutagen").level == logging.WARNING
