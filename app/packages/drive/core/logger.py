"""日志配置模块：彩色控制台输出、按天滚动的文件日志与可选的 JSON 结构化格式。

每条日志都会附带当前请求的 ``request_id``（由 ``RequestIdMiddleware`` 写入上下文），
以及业务层通过 ``extra`` 传入的 ``entry_id`` / ``user_id``，便于按文件条目排查问题。
"""

import json
import logging
import logging.config
import sys
from contextvars import ContextVar
from datetime import datetime
from typing import Optional

from .config import get_settings

_request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# 业务日志可能携带的上下文字段
_CONTEXT_FIELDS = ("request_id", "user_id", "entry_id")


class _TZFormatter(logging.Formatter):
    """按配置时区渲染时间戳；未指定 datefmt 时输出带毫秒的 ISO-8601。"""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: D401
        dt = datetime.fromtimestamp(record.created, get_settings().timezone_info)
        if datefmt:
            return dt.strftime(datefmt)
        return dt.isoformat(sep=" ", timespec="milliseconds")


class ColorFormatter(_TZFormatter):
    """ANSI 彩色格式化器：终端下按日志级别着色。"""

    RESET = "\033[0m"
    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[41m",
    }

    def __init__(
        self,
        fmt: str,
        datefmt: Optional[str] = None,
        style: str = "%",
        use_colors: Optional[bool] = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self.use_colors = sys.stderr.isatty() if use_colors is None else use_colors

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = self.COLORS.get(record.levelno) if self.use_colors else None
        return f"{color}{message}{self.RESET}" if color else message


class JsonFormatter(_TZFormatter):
    """结构化 JSON 日志，附带请求与文件条目上下文。"""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record),
            "logger": record.name,
            "level": record.levelname,
            "msg": record.getMessage(),
        }
        for field in _CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class RequestIdFilter(logging.Filter):
    """把上下文中的 request_id 注入每条日志记录。"""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        record.request_id = _request_id_ctx.get()
        return True


def setup_logging() -> None:
    """初始化日志系统，确保所有模块使用统一的输出格式与级别。"""
    settings = get_settings()
    settings.log_directory.mkdir(parents=True, exist_ok=True)

    console_formatter = "json" if settings.log_json else "standard"
    file_formatter = "json" if settings.log_json else "plain"
    line_format = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"

    shared_logger = {
        "handlers": ["default", "file"],
        "level": settings.log_level,
        "propagate": False,
    }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "()": "app.packages.drive.core.logger.ColorFormatter",
                    "format": line_format,
                },
                "plain": {
                    "()": "app.packages.drive.core.logger._TZFormatter",
                    "format": line_format,
                },
                "json": {"()": "app.packages.drive.core.logger.JsonFormatter"},
            },
            "filters": {
                "request_id": {"()": "app.packages.drive.core.logger.RequestIdFilter"},
            },
            "handlers": {
                "default": {
                    "level": settings.log_level,
                    "class": "logging.StreamHandler",
                    "formatter": console_formatter,
                    "filters": ["request_id"],
                },
                "file": {
                    "level": settings.log_level,
                    "class": "logging.handlers.TimedRotatingFileHandler",
                    "formatter": file_formatter,
                    "filename": str(settings.log_file_path),
                    "when": "midnight",
                    "backupCount": 14,
                    "encoding": "utf-8",
                    "delay": True,
                    "filters": ["request_id"],
                },
            },
            "loggers": {
                name: dict(shared_logger)
                for name in ("app", "uvicorn", "uvicorn.error", "uvicorn.access")
            },
            "root": {"handlers": ["default", "file"], "level": settings.log_level},
        }
    )


logger = logging.getLogger("app")


def set_request_id(request_id: Optional[str]) -> None:
    _request_id_ctx.set(request_id)
