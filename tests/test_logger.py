"""Tests for the logging wrapper."""

import logging
from pathlib import Path

import pytest

from bulkup.logger import BulkupLogger, clear_logger_state, get_logger


@pytest.fixture(autouse=True)
def reset_loggers():
    clear_logger_state()
    yield
    clear_logger_state()


class TestGetLogger:
    """Test cases for get_logger."""

    def test_singleton_per_name(self) -> None:
        """Test that the same name returns the same instance."""
        assert get_logger("bulkup.example") is get_logger("bulkup.example")

    def test_module_loggers_share_root_handler(self) -> None:
        """Test that child loggers have no console handler of their own."""
        child = get_logger("bulkup.child_module")

        assert child.logger.handlers == []
        assert child.logger.parent is logging.getLogger("bulkup")


class TestProgressContext:
    """Test cases for log deferral."""

    def test_info_is_deferred_until_exit(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that messages logged during progress appear afterwards."""
        logger = get_logger("bulkup.deferral")

        with caplog.at_level(logging.INFO, logger="bulkup"):
            with logger.progress_context():
                logger.info("queued %d", 3)
                logger.warning("careful")
                assert "queued 3" not in caplog.text
            assert "queued 3" in caplog.text
            assert "careful" in caplog.text

    def test_errors_are_not_deferred(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that errors are logged immediately."""
        logger = get_logger("bulkup.errors")

        with caplog.at_level(logging.ERROR, logger="bulkup"):
            with logger.progress_context():
                logger.error("failed now")
                assert "failed now" in caplog.text

    def test_deferral_is_shared_across_loggers(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that one context defers every module logger."""
        root = get_logger("bulkup")
        child = get_logger("bulkup.other")

        with caplog.at_level(logging.INFO, logger="bulkup"):
            with root.progress_context():
                child.info("from child")
                assert "from child" not in caplog.text
            assert "from child" in caplog.text


class TestConsoleLevel:
    """Test cases for console level changes."""

    def test_temporary_level_is_restored(self) -> None:
        """Test verbose mode toggling."""
        logger = BulkupLogger("bulkup-console-test")
        handler = logger.logger.handlers[0]
        logger.set_console_level("WARNING")

        logger.set_console_level_temporarily("DEBUG")
        assert handler.level == logging.DEBUG

        logger.restore_console_level()
        assert handler.level == logging.WARNING
        logger.logger.removeHandler(handler)


def test_file_logging(tmp_path: Path) -> None:
    """Test that file logging writes to a rotating log file."""
    logger = BulkupLogger("bulkup-file-test", console=False)
    log_file = tmp_path / "logs" / "bulkup.log"

    logger.setup_file_logging(log_file, "DEBUG")
    logger.debug("written to file")
    for handler in logger.logger.handlers:
        handler.flush()

    assert "written to file" in log_file.read_text(encoding="utf-8")
    for handler in list(logger.logger.handlers):
        handler.close()
        logger.logger.removeHandler(handler)
