"""
Tests for observability — logging setup and the operation log format.
"""

import logging
from pathlib import Path

import pytest

from bbmigrate.core.observability.logging_config import (
    OperationFormatter,
    resolve_level,
    setup_logging,
)


def _record(level: int, msg: str, *args) -> logging.LogRecord:
    return logging.LogRecord("bbmigrate.test", level, __file__, 1, msg, args, None)


class TestOperationFormatter:
    def test_info_is_bare(self):
        record = _record(logging.INFO, "Fixed in post %s: %s", "http://f/p/1", "HRs")
        assert OperationFormatter().format(record) == "Fixed in post http://f/p/1: HRs"

    def test_warning_keeps_its_own_prefix(self):
        record = _record(logging.WARNING, "WARNING: post %s contains: %s", "x", "y")
        assert OperationFormatter().format(record) == "WARNING: post x contains: y"

    def test_error_prefixed(self):
        record = _record(logging.ERROR, "Cannot fetch post %s", "x")
        assert OperationFormatter().format(record) == "ERROR: Cannot fetch post x"


class TestResolveLevel:
    def test_default_is_info(self, monkeypatch):
        monkeypatch.delenv("BBM_LOG_LEVEL", raising=False)
        assert resolve_level() == "INFO"

    def test_env_var(self, monkeypatch):
        monkeypatch.setenv("BBM_LOG_LEVEL", "WARNING")
        assert resolve_level() == "WARNING"

    @pytest.mark.parametrize(
        ("verbose", "quiet", "expected"),
        [(True, False, "DEBUG"), (False, True, "ERROR"), (True, True, "DEBUG")],
    )
    def test_flags_beat_env(self, monkeypatch, verbose, quiet, expected):
        monkeypatch.setenv("BBM_LOG_LEVEL", "WARNING")
        assert resolve_level(verbose=verbose, quiet=quiet) == expected


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def _no_env_file(self, monkeypatch):
        monkeypatch.delenv("BBM_LOG_FILE", raising=False)
        monkeypatch.delenv("BBM_LOG_FILE_LEVEL", raising=False)

    def test_level_applied(self):
        setup_logging(level="ERROR")
        root = logging.getLogger()
        assert root.level == logging.ERROR
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, OperationFormatter)

    def test_debug_uses_diagnostic_format(self):
        setup_logging(level="DEBUG")
        assert not isinstance(logging.getLogger().handlers[0].formatter, OperationFormatter)

    def test_unknown_level_falls_back_to_info(self):
        setup_logging(level="chatty")
        assert logging.getLogger().level == logging.INFO

    def test_file_handler(self, tmp_path: Path):
        log_file = tmp_path / "run.log"
        setup_logging(level="WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2

        logging.getLogger("bbmigrate.test").debug("to the file only")
        for handler in root.handlers:
            handler.flush()
        assert "to the file only" in log_file.read_text()

    def test_file_from_env(self, tmp_path: Path, monkeypatch):
        log_file = tmp_path / "env.log"
        monkeypatch.setenv("BBM_LOG_FILE", str(log_file))
        setup_logging(level="INFO")

        logging.getLogger("bbmigrate.test").info("teed")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "teed" in log_file.read_text()
