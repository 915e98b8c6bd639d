"""
Logging — настройка логирования

Плоский текст или структурированный JSON (одна строка на запись) в stderr.
"""
import json
import logging
import sys
from typing import Optional

from src.config.settings import EngineSettings, get_settings

# Атрибуты LogRecord, которые не являются extra полями
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """JSON formatter: один объект на строку, поля extra= включаются."""

    def format(self, record: logging.LogRecord) -> str:
        log_dict = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_dict[key] = value
        if record.exc_info:
            log_dict["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_dict, ensure_ascii=False, default=str)


def setup_logging(settings: Optional[EngineSettings] = None) -> logging.Logger:
    """
    Настройка логгера пакета ("src").

    Идемпотентно: handler, установленный предыдущим вызовом, заменяется.
    """
    settings = settings or get_settings()
    logger = logging.getLogger("src")
    logger.setLevel(settings.log_level)

    for handler in list(logger.handlers):
        if getattr(handler, "_trebal_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler._trebal_handler = True
    if settings.log_format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))
    logger.addHandler(handler)
    return logger
