"""
Structured JSON Logging.

One JSON object per line, to stdout and to a rotating file.  Ledger
context passed through ``extra`` (``account_id``, ``transaction_id`` ...)
is lifted to top-level keys so the balance adjustments of a single
transaction can be followed across create, update, delete and
reconciliation with one filter::

    {"timestamp": "...", "level": "WARNING", "logger": "services",
     "message": "Balance adjustment failed ...",
     "account_id": "4f1c...", "transaction_id": "9a2e...", "delta": "-50.00"}

Loggers are injected; :meth:`StructuredLogger.bind` derives a child that
stamps fixed context on every record.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, TextIO

# Keys promoted out of ``extra`` into the top level of each entry.
LEDGER_FIELDS: tuple[str, ...] = (
    "user_id",
    "account_id",
    "transaction_id",
    "queue_id",
    "delta",
    "reason",
)


def _json_default(value: object) -> object:
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return str(value)


class JSONFormatter(logging.Formatter):
    """Render a record as one JSON object.

    Money travels as fixed-point strings, never floats.
    """

    _STANDARD_ATTRS: frozenset[str] = frozenset(
        logging.LogRecord(
            name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
        ).__dict__.keys()
    ) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra: dict[str, object] = {}
        for key, value in record.__dict__.items():
            if key in self._STANDARD_ATTRS or value is None:
                continue
            if key in LEDGER_FIELDS:
                entry[key] = value
            else:
                extra[key] = value
        if extra:
            entry["extra"] = extra

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exception"] = record.exc_text

        return json.dumps(entry, ensure_ascii=False, default=_json_default)


def _attach_handlers(
    logger: logging.Logger,
    level: int,
    stream: Optional[TextIO],
    log_file: str,
    max_bytes: int,
    backup_count: int,
) -> None:
    formatter = JSONFormatter()

    stream_handler = logging.StreamHandler(stream or sys.stdout)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    try:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=str(log_path),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    except OSError as exc:
        logger.warning("Could not open log file '%s': %s; logging to console only.", log_file, exc)
        return
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)


class StructuredLogger:
    """Injectable JSON logger.

    Usage::

        log = StructuredLogger(name="services")
        log.warning("Adjustment queued", extra={"account_id": account_id})

        tx_log = log.bind(transaction_id=tx.id)
        tx_log.info("Transaction updated")   # carries transaction_id
    """

    def __init__(
        self,
        name: str = "monetrix",
        level: int = logging.INFO,
        stream: Optional[TextIO] = None,
        log_file: Optional[str] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
    ) -> None:
        self._logger: logging.Logger = logging.getLogger(name)
        self._logger.setLevel(level)
        self._context: dict[str, object] = {}

        # Handlers are attached once per logger name.
        if not self._logger.handlers:
            from monetrix.config import get_config

            cfg = get_config()
            _attach_handlers(
                self._logger,
                level,
                stream,
                log_file or cfg.LOG_FILE,
                max_bytes if max_bytes is not None else cfg.LOG_MAX_BYTES,
                backup_count if backup_count is not None else cfg.LOG_BACKUP_COUNT,
            )

    @property
    def context(self) -> dict[str, object]:
        return dict(self._context)

    def bind(self, **context: object) -> StructuredLogger:
        """Return a logger sharing this one's handlers with *context* added."""
        child = StructuredLogger.__new__(StructuredLogger)
        child._logger = self._logger
        child._context = {**self._context, **context}
        return child

    def _log(self, level: int, msg: str, args: tuple[object, ...], kwargs: dict) -> None:
        if self._context:
            kwargs["extra"] = {**self._context, **(kwargs.get("extra") or {})}
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args: object, **kwargs: object) -> None:
        self._log(logging.DEBUG, msg, args, kwargs)

    def info(self, msg: str, *args: object, **kwargs: object) -> None:
        self._log(logging.INFO, msg, args, kwargs)

    def warning(self, msg: str, *args: object, **kwargs: object) -> None:
        self._log(logging.WARNING, msg, args, kwargs)

    def error(self, msg: str, *args: object, **kwargs: object) -> None:
        self._log(logging.ERROR, msg, args, kwargs)


def get_logger(name: str = "monetrix") -> StructuredLogger:
    return StructuredLogger(name=name)
