"""
Tests for logging configuration module.
"""

import logging

from arc_audit.common import vlog
from arc_audit.logging_config import ColoredFormatter, get_logger, setup_logging


def make_record(level=logging.INFO, msg="Test message"):
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestSetupLogging:
    """Test logging setup and configuration."""

    def test_setup_logging_default(self):
        """Test default logging setup."""
        logger = setup_logging()
        assert logger.name == "arc_audit"
        assert logger.level == logging.INFO
        assert logger.propagate is False

    def test_setup_logging_verbose(self):
        """Test verbose logging enables DEBUG level."""
        logger = setup_logging(verbose=True)
        assert logger.level == logging.DEBUG

    def test_setup_logging_quiet(self):
        """Test quiet mode suppresses console output."""
        logger = setup_logging(quiet=True)
        assert logger.level == logging.WARNING
        console_handlers = [
            h for h in logger.handlers
            if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        ]
        assert len(console_handlers) == 0

    def test_console_goes_to_stderr(self, capsys):
        """Test console log output stays off stdout."""
        logger = setup_logging()
        logger.warning("catalog unreachable")
        captured = capsys.readouterr()
        assert "catalog unreachable" not in captured.out

    def test_setup_logging_with_file(self, tmp_path):
        """Test logging to file at DEBUG level."""
        log_file = tmp_path / "audit.log"
        logger = setup_logging(log_file=str(log_file))

        file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].level == logging.DEBUG

        logger.info("Test message")
        for handler in file_handlers:
            handler.flush()
        assert "Test message" in log_file.read_text()

    def test_setup_logging_creates_log_directory(self, tmp_path):
        """Test that log directory is created if it doesn't exist."""
        log_file = tmp_path / "subdir" / "audit.log"
        setup_logging(log_file=str(log_file)).info("Test")
        assert log_file.parent.exists()

    def test_repeated_setup_replaces_handlers(self):
        """Test calling setup twice does not duplicate handlers."""
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_child_loggers_inherit(self, caplog):
        """Test module loggers reach the package logger."""
        setup_logging(level="DEBUG", propagate=True)
        with caplog.at_level(logging.DEBUG, logger="arc_audit"):
            logging.getLogger("arc_audit.scanner").debug("child message")
        assert "child message" in caplog.text


class TestGetLogger:
    """Test logger retrieval."""

    def test_get_logger_returns_instance(self):
        """Test get_logger returns logger instance."""
        assert isinstance(get_logger(), logging.Logger)

    def test_get_logger_singleton(self):
        """Test get_logger returns same instance."""
        assert get_logger() is get_logger()


class TestColoredFormatter:
    """Test colored log formatter."""

    def test_colored_formatter_with_colors(self):
        """Test formatter with colors enabled."""
        formatter = ColoredFormatter("%(levelname_colored)s %(message)s", use_colors=True)
        formatted = formatter.format(make_record())
        assert "Test message" in formatted
        assert "\033[" in formatted

    def test_colored_formatter_without_colors(self):
        """Test formatter with colors disabled."""
        formatter = ColoredFormatter("%(levelname_colored)s %(message)s", use_colors=False)
        formatted = formatter.format(make_record(logging.WARNING))
        assert formatted == "WARNING Test message"


class TestVlog:
    """Test vlog helper."""

    def test_vlog_integration(self, caplog):
        """Test vlog uses the logging system."""
        setup_logging(level="INFO", propagate=True)
        with caplog.at_level(logging.INFO, logger="arc_audit"):
            vlog("Test vlog message", verbose=True)
        assert "Test vlog message" in caplog.text

    def test_vlog_respects_verbose_flag(self, caplog, monkeypatch):
        """Test vlog stays silent without verbose."""
        monkeypatch.delenv("ARC_AUDIT_DEBUG", raising=False)
        setup_logging(level="INFO", propagate=True)
        with caplog.at_level(logging.INFO, logger="arc_audit"):
            vlog("Should not appear", verbose=False)
        assert "Should not appear" not in caplog.text

    def test_vlog_debug_environment(self, caplog, monkeypatch):
        """Test ARC_AUDIT_DEBUG=1 enables vlog output."""
        monkeypatch.setenv("ARC_AUDIT_DEBUG", "1")
        setup_logging(level="INFO", propagate=True)
        with caplog.at_level(logging.INFO, logger="arc_audit"):
            vlog("Debug via env", verbose=False)
        assert "Debug via env" in caplog.text
