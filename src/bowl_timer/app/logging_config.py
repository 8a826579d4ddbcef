"""Logging configuration for bowl-timer.

Writes the session log to file without interfering with the TUI. Every
line carries the label of the sitting in progress ("s1", "s2", ...) or
"-" between sittings, so one session's timer, cue and video events can
be read together.
"""

import logging
from pathlib import Path

LOG_FILENAME = "bowl_timer.log"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(session)-3s | %(name)-20s | %(message)s"
IDLE_LABEL = "-"


class SessionContextFilter(logging.Filter):
    """Stamps each record with the label of the session in progress."""

    def __init__(self) -> None:
        super().__init__()
        self.label = IDLE_LABEL
        self._count = 0

    def begin(self) -> str:
        """Open a new session label.

        Returns:
            The label now attached to log records
        """
        self._count += 1
        self.label = f"s{self._count}"
        return self.label

    def end(self) -> None:
        """Return to the between-sessions label."""
        self.label = IDLE_LABEL

    def filter(self, record: logging.LogRecord) -> bool:
        record.session = self.label
        return True


session_context = SessionContextFilter()


def _backup_path(log_file: Path, index: int) -> Path:
    return log_file.with_name(f"{log_file.name}.{index}")


def _rotate_log_if_needed(log_file: Path, max_bytes: int = 10 * 1024 * 1024, backup_count: int = 5) -> None:
    """Rotate log file on startup if it exceeds max size.

    bowl_timer.log becomes bowl_timer.log.1, .1 becomes .2 and so on;
    the backup numbered backup_count is dropped.

    Args:
        log_file: Path to the log file
        max_bytes: Maximum file size before rotation (default: 10MB)
        backup_count: Number of backup files to keep (default: 5)
    """
    if not log_file.exists() or log_file.stat().st_size < max_bytes:
        return

    oldest = _backup_path(log_file, backup_count)
    if oldest.exists():
        oldest.unlink()

    for index in range(backup_count - 1, 0, -1):
        source = _backup_path(log_file, index)
        if source.exists():
            source.rename(_backup_path(log_file, index + 1))

    log_file.rename(_backup_path(log_file, 1))


def setup_logging(log_dir: Path, level: int = logging.DEBUG) -> logging.Logger:
    """Set up application logging to file with startup rotation.

    Args:
        log_dir: Directory to store log files
        level: Minimum level written to the log file

    Returns:
        Configured logger instance
    """
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / LOG_FILENAME
    _rotate_log_if_needed(log_file)

    logger = logging.getLogger("bowl_timer")
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setLevel(level)
    # Handler-level so records from every child logger get a label
    file_handler.addFilter(session_context)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    logger.addHandler(file_handler)

    logger.info("=" * 80)
    logger.info("BOWL-TIMER STARTED")
    logger.info(f"Log file: {log_file}")
    logger.info("=" * 80)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific module.

    Args:
        name: Module name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(f"bowl_timer.{name}")
