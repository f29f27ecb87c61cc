"""File logging for the server process.

Three size-rotated files per day under ``<log_dir>/<YYYY-MM-DD>/``:

    debug.app.log   DEBUG records only
    info.app.log    INFO records only
    error.app.log   WARNING and above
"""

import logging
from datetime import date
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_MAX_BYTES = 10 * 1024
LOG_BACKUP_COUNT = 30
LOG_FORMAT = "%(asctime)s, %(levelname)s, %(message)s"


class LevelRangeFilter(logging.Filter):
    """Pass records whose level lies between two bounds, in either order."""

    def __init__(self, low: int, high: int):
        super().__init__()
        self.low = min(low, high)
        self.high = max(low, high)

    def filter(self, record: logging.LogRecord) -> bool:
        return self.low <= record.levelno <= self.high


def _rotating_handler(path: Path, low: int, high: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(LevelRangeFilter(low, high))
    return handler


def setup_file_logging(log_dir: str | Path, today: date | None = None) -> Path:
    """Attach the per-level rotating handlers to the root logger.

    The root logger is lowered to DEBUG so every file gets its records;
    console handlers keep whatever level they were given.

    Returns the dated directory the files are written to.
    """
    day_dir = Path(log_dir) / (today or date.today()).isoformat()
    day_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.addHandler(_rotating_handler(day_dir / "debug.app.log", logging.DEBUG, logging.DEBUG))
    root.addHandler(_rotating_handler(day_dir / "info.app.log", logging.INFO, logging.INFO))
    root.addHandler(_rotating_handler(day_dir / "error.app.log", logging.WARNING, logging.CRITICAL))
    return day_dir
