import json
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from ..config.paths import log_dir
from ..config.runtime import get_runtime_settings


class JsonFormatter(logging.Formatter):
    """Serialize log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "category": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, ensure_ascii=False)


class SizeAndTimeRotatingFileHandler(TimedRotatingFileHandler):
    """Rotate on size as well as on time."""

    def __init__(
        self,
        filename: str | Path,
        max_bytes: int = 0,
        backup_count: int = 0,
        when: str = "midnight",
        interval: int = 1,
        encoding: str | None = "utf-8",
        delay: bool = True,
    ) -> None:
        self.maxBytes = max_bytes
        super().__init__(
            str(filename),
            when=when,
            interval=interval,
            backupCount=backup_count,
            encoding=encoding,
            delay=delay,
        )

    def shouldRollover(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if self.maxBytes > 0:
            if self.stream is None:  # pragma: no cover
                self.stream = self._open()
            msg = f"{self.format(record)}\n"
            if (self.stream.tell() + len(msg.encode(self.encoding or "utf-8"))) >= self.maxBytes:
                return True
        return super().shouldRollover(record)


def _build_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(f"workspace_chat.{name}")
    if logger.handlers:
        return logger

    settings = get_runtime_settings()
    handler = SizeAndTimeRotatingFileHandler(
        log_dir() / f"{name}.jsonl",
        max_bytes=settings.log_rotate_mb * 1024 * 1024,
        backup_count=settings.log_retention_days,
    )
    handler.setFormatter(JsonFormatter())
    level = logging.DEBUG if settings.enable_debug_logs else logging.getLevelName(settings.log_level.upper())
    logger.setLevel(level if isinstance(level, int) else logging.INFO)
    logger.addHandler(handler)
    return logger


_LOGGERS: dict[str, logging.Logger] = {}


def get_logger(name: str) -> logging.Logger:
    """Return the named client logger, creating it on first use."""
    if name not in _LOGGERS:
        _LOGGERS[name] = _build_logger(name)
    return _LOGGERS[name]
