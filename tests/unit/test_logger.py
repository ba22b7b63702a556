"""Unit tests for logging setup."""

import logging
from logging.handlers import RotatingFileHandler

import colorlog

from src.utils.logger import get_logger, log_execution_time


class TestGetLogger:
    """Test logger construction."""

    def test_console_only_when_file_logging_disabled(self):
        logger = get_logger("stayscout.test.console", level="debug")

        assert logger.level == logging.DEBUG
        assert logger.propagate is False
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, colorlog.ColoredFormatter)

    def test_file_handler(self, tmp_path, monkeypatch):
        monkeypatch.setenv("STAYSCOUT_LOG_TO_FILE", "1")
        logger = get_logger("stayscout.test.file", log_dir=tmp_path)

        file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].baseFilename == str(tmp_path / "stayscout.log")
        for handler in file_handlers:
            handler.close()

    def test_handlers_added_once(self):
        first = get_logger("stayscout.test.once")
        second = get_logger("stayscout.test.once")

        assert first is second
        assert len(second.handlers) == 1

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        assert get_logger("stayscout.test.env").level == logging.WARNING


class TestLogExecutionTime:
    """Test the timing context manager."""

    def test_logs_start_and_completion(self, caplog):
        logger = logging.getLogger("stayscout.test.timing")
        logger.setLevel(logging.DEBUG)

        with caplog.at_level(logging.DEBUG, logger="stayscout.test.timing"):
            with log_execution_time(logger, "detail '123'"):
                pass

        messages = [record.getMessage() for record in caplog.records]
        assert messages[0] == "Starting: detail '123'"
        assert messages[1].startswith("Completed: detail '123' in ")

    def test_completion_logged_on_error(self, caplog):
        logger = logging.getLogger("stayscout.test.timing_error")

        with caplog.at_level(logging.DEBUG, logger="stayscout.test.timing_error"):
            try:
                with log_execution_time(logger, "search 'Porto'"):
                    raise RuntimeError("boom")
            except RuntimeError:
                pass

        assert caplog.records[-1].getMessage().startswith("Completed: search 'Porto'")
