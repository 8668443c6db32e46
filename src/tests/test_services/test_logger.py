"""
Tests for LoggerService
"""

import json
import logging

from shuffleboard.services.logger import JsonFormatter, LoggerService


class TestLoggerService:
    """Tests for handler setup and cleanup"""

    def test_console_only(self):
        service = LoggerService({"file_logging": False})
        try:
            assert len(service.handlers) == 1
            assert service.log_dir is None
        finally:
            service.cleanup()

    def test_file_handlers(self, tmp_path):
        service = LoggerService({"file_logging": True, "log_dir": str(tmp_path / "logs")})
        try:
            assert len(service.handlers) == 3
            logging.getLogger("shuffleboard.test").error("written to files")
            for handler in service.handlers:
                handler.flush()
            assert "written to files" in (tmp_path / "logs" / "app.log").read_text()
            assert "written to files" in (tmp_path / "logs" / "errors.log").read_text()
        finally:
            service.cleanup()

    def test_cleanup_keeps_foreign_handlers(self):
        foreign = logging.NullHandler()
        root = logging.getLogger()
        root.addHandler(foreign)
        try:
            LoggerService({"file_logging": False}).cleanup()
            assert foreign in root.handlers
        finally:
            root.removeHandler(foreign)

    def test_get_logger_is_cached(self):
        service = LoggerService({"file_logging": False})
        try:
            assert service.get_logger("a") is service.get_logger("a")
        finally:
            service.cleanup()


class TestJsonFormatter:
    """Tests for structured log output"""

    def test_format(self):
        record = logging.LogRecord("shuffleboard.x", logging.WARNING, __file__, 10, "hello %s", ("w",), None)
        data = json.loads(JsonFormatter().format(record))
        assert data["level"] == "WARNING"
        assert data["message"] == "hello w"
        assert data["logger"] == "shuffleboard.x"
