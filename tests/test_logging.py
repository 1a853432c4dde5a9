"""
Tests for logging configuration and log file cleanup.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timedelta

from services.logging import cleanup_old_logs, configure_logging, get_log_file_path


@contextmanager
def bare_root_logger():
    """Detach root handlers (pytest's included) and restore them on exit."""
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    root.handlers = []
    try:
        yield root
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers = saved_handlers
        root.setLevel(saved_level)


def touch_log(log_dir, days_ago: int):
    path = get_log_file_path(datetime.now() - timedelta(days=days_ago), log_dir=log_dir)
    path.write_text("entry\n")
    return path


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_console_only(self):
        with bare_root_logger() as root:
            configure_logging(logging.DEBUG)
            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1

    def test_file_handler(self, tmp_path):
        with bare_root_logger() as root:
            configure_logging(logging.INFO, log_dir=tmp_path)
            assert len(root.handlers) == 2

            logging.getLogger("galawallet.test").info("hello file")
            for handler in root.handlers:
                handler.flush()

        content = get_log_file_path(log_dir=tmp_path).read_text()
        assert "hello file" in content
        assert "[INFO] galawallet.test" in content

    def test_configures_once(self, tmp_path):
        with bare_root_logger() as root:
            configure_logging()
            configure_logging(log_dir=tmp_path)
            assert len(root.handlers) == 1

class TestLogFiles:
    """Tests for daily file naming and retention."""

    def test_file_name(self, tmp_path):
        path = get_log_file_path(datetime(2026, 2, 8), log_dir=tmp_path)
        assert path == tmp_path / "galawallet-2026-02-08.log"

    def test_cleanup_old_logs(self, tmp_path):
        old = touch_log(tmp_path, 10)
        recent = touch_log(tmp_path, 2)
        today = touch_log(tmp_path, 0)

        assert cleanup_old_logs(7, log_dir=tmp_path) == 1
        assert not old.exists()
        assert recent.exists()
        assert today.exists()

    def test_cleanup_ignores_unrelated_files(self, tmp_path):
        (tmp_path / "galawallet-notadate.log").write_text("x")
        (tmp_path / "other.log").write_text("x")
        assert cleanup_old_logs(0, log_dir=tmp_path) == 0

    def test_zero_retention_keeps_today(self, tmp_path):
        today = touch_log(tmp_path, 0)
        yesterday = touch_log(tmp_path, 1)
        assert cleanup_old_logs(0, log_dir=tmp_path) == 1
        assert today.exists()
        assert not yesterday.exists()

    def test_negative_retention_is_noop(self, tmp_path):
        touch_log(tmp_path, 30)
        assert cleanup_old_logs(-1, log_dir=tmp_path) == 0

    def test_missing_directory(self, tmp_path):
        assert cleanup_old_logs(1, log_dir=tmp_path / "absent") == 0
