"""
Logging setup.

All loggers live under the ``shiptrack`` namespace. Catalog writes
(CSV imports and bulk edits) are additionally copied to ``imports.log``
so a seller's batch history can be reviewed without the request noise.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from shiptrack.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER_NAME = "shiptrack"

# Components whose records also go to imports.log
BATCH_COMPONENTS = ("reconcile", "bulk")


class _ComponentFilter(logging.Filter):
    def __init__(self, components):
        super().__init__()
        self.prefixes = tuple(f"{ROOT_LOGGER_NAME}.{c}" for c in components)

    def filter(self, record: logging.LogRecord) -> bool:
        return record.name.startswith(self.prefixes)


def _rotating(path: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=settings.log_max_bytes,
        backupCount=settings.log_backup_count,
        encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(log_level: str = "INFO", log_dir: Optional[str] = None) -> logging.Logger:
    """
    Configure the ``shiptrack`` logger once per process.

    Handlers: stdout, ``shiptrack.log`` (everything at ``log_level``),
    ``error.log`` (ERROR and above) and ``imports.log`` (batch components).
    Calling it again is a no-op.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    if logger.handlers:
        return logger

    log_path = Path(log_dir or settings.log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.DEBUG if settings.debug else logging.INFO)
    console.setFormatter(formatter)

    batches = _rotating(log_path / "imports.log", logging.INFO, formatter)
    batches.addFilter(_ComponentFilter(BATCH_COMPONENTS))

    logger.addHandler(console)
    logger.addHandler(_rotating(log_path / "shiptrack.log", logging.DEBUG, formatter))
    logger.addHandler(_rotating(log_path / "error.log", logging.ERROR, formatter))
    logger.addHandler(batches)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger for one component, e.g. ``get_logger("catalog")``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
