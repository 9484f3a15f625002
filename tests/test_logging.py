"""
Tests for logging setup.
"""

import logging

import pytest

from kubegen.core.observability.logging_config import level_from_flags, setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLevelFromFlags:
    def test_debug_wins(self):
        assert level_from_flags(debug=True, verbose=True, quiet=True) == "DEBUG"

    def test_verbose(self):
        assert level_from_flags(verbose=True, quiet=True) == "INFO"

    def test_quiet(self):
        assert level_from_flags(quiet=True) == "ERROR"

    def test_environment_default(self, monkeypatch):
        monkeypatch.setenv("KUBEGEN_LOG_LEVEL", "INFO")
        assert level_from_flags() == "INFO"

    def test_fallback(self, monkeypatch):
        monkeypatch.delenv("KUBEGEN_LOG_LEVEL", raising=False)
        assert level_from_flags() == "WARNING"


class TestSetupLogging:
    def test_console_level(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_unknown_level_falls_back(self):
        setup_logging("CHATTY")
        assert logging.getLogger().level == logging.WARNING

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "kubegen.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        logging.getLogger("kubegen.test").debug("hello file")
        for handler in root.handlers:
            handler.flush()
        assert "hello file" in log_file.read_text()
