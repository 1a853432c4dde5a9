"""
Logging - Application logging configuration and disk persistence.

Provides:
- Python logging configuration with console and optional file output
- Log persistence to daily files: galawallet-YYYY-MM-DD.log
- Automatic cleanup of old log files
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional
import logging

from utils import get_logs_dir


LOG_PREFIX = "galawallet-"
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def configure_logging(level: int = logging.INFO, log_dir: Optional[Path] = None) -> None:
    """
    Configure Python logging for the application.

    Sets up a root logger with console output and, when log_dir is given,
    a file handler appending to today's log file.

    Args:
        level: Logging level (default: INFO)
        log_dir: Directory for daily log files (None = console only)
    """
    root_logger = logging.getLogger()

    # Only configure if not already configured
    if root_logger.handlers:
        return

    root_logger.setLevel(level)

    # Console handler with simple format
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S'))
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(get_log_file_path(log_dir=log_dir), encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        root_logger.addHandler(file_handler)

    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))


def get_log_file_path(date: Optional[datetime] = None, log_dir: Optional[Path] = None) -> Path:
    """Get the log file path for a specific date (defaults to today)."""
    if date is None:
        date = datetime.now()
    if log_dir is None:
        log_dir = get_logs_dir()
    filename = f"{LOG_PREFIX}{date.strftime('%Y-%m-%d')}.log"
    return Path(log_dir) / filename


def cleanup_old_logs(retention_days: int, log_dir: Optional[Path] = None) -> int:
    """
    Delete log files older than retention_days.

    Args:
        retention_days: Delete files older than this (0 = delete all but today's)
        log_dir: Directory to clean (defaults to the app logs dir)

    Returns:
        Number of files deleted
    """
    if retention_days < 0:
        return 0

    if log_dir is None:
        log_dir = get_logs_dir()
    log_dir = Path(log_dir)
    if not log_dir.is_dir():
        return 0

    today = datetime.now().replace(hour=0, minute=0, second=0, microsecond=0)
    cutoff_date = today - timedelta(days=retention_days)
    deleted_count = 0

    for file_path in log_dir.glob(f"{LOG_PREFIX}*.log"):
        # Parse date from filename
        try:
            date_str = file_path.stem[len(LOG_PREFIX):]
            file_date = datetime.strptime(date_str, "%Y-%m-%d")
        except ValueError:
            # Skip files that don't match expected format
            continue

        if file_date < cutoff_date:
            try:
                file_path.unlink()
                deleted_count += 1
            except OSError as e:
                logging.getLogger(__name__).warning(f"Could not delete {file_path.name}: {e}")

    return deleted_count
