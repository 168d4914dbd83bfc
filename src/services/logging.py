"""
Logging - Application logging configuration and disk persistence.

Provides:
- Python logging configuration with console and optional file output
- Daily log files: hdvault-YYYY-MM-DD.log
- Automatic cleanup of old log files

Never log seeds, pads, passwords, phrases or private keys.
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional
import logging

from utils import get_logs_dir

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def configure_logging(level: int = logging.INFO, retention_days: int = 0,
                      logs_dir: Optional[Path] = None) -> None:
    """
    Configure Python logging for the application.

    Sets up a root logger with console output, plus today's log file when
    retention_days > 0.

    Args:
        level: Logging level (default: INFO)
        retention_days: If 0, don't write log files
        logs_dir: Directory for log files (default: app logs dir)
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

    if retention_days > 0:
        log_path = get_log_file_path(logs_dir=logs_dir)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        root_logger.addHandler(file_handler)
        cleanup_old_logs(retention_days, logs_dir=logs_dir)


def get_log_file_path(date: Optional[datetime] = None, logs_dir: Optional[Path] = None) -> Path:
    """Get the log file path for a specific date (defaults to today)."""
    if date is None:
        date = datetime.now()
    filename = f"hdvault-{date.strftime('%Y-%m-%d')}.log"
    return (logs_dir or get_logs_dir()) / filename


def cleanup_old_logs(retention_days: int, logs_dir: Optional[Path] = None) -> int:
    """
    Delete log files older than retention_days.

    Args:
        retention_days: Delete files older than this (0 = delete all)

    Returns:
        Number of files deleted
    """
    if retention_days < 0:
        return 0

    logs_dir = logs_dir or get_logs_dir()
    cutoff_date = datetime.now() - timedelta(days=retention_days)
    deleted_count = 0

    for file_path in logs_dir.glob("hdvault-*.log"):
        # Parse date from filename
        try:
            date_str = file_path.stem.replace("hdvault-", "")
            file_date = datetime.strptime(date_str, "%Y-%m-%d")

            if file_date < cutoff_date:
                file_path.unlink()
                deleted_count += 1
        except (ValueError, OSError) as e:
            # Skip files that don't match expected format
            logger.debug(f"Skipping log file {file_path.name}: {e}")

    return deleted_count
