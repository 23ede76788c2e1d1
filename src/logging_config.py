"""Structured logging configuration.

Records are rendered as one JSON object per line (production) or as a
readable text line (development). Two context variables are attached to
every record when set: the request's correlation id and the id of the
account deletion run in progress.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

# Set per request by CorrelationIdMiddleware
correlation_id_ctx: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Set for the duration of one account deletion cascade
deletion_run_id_ctx: ContextVar[str | None] = ContextVar(
    "deletion_run_id", default=None
)

DEFAULT_SERVICE_NAME = "workspace-api"

# Loggers that are too chatty at INFO
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx")


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return dict(getattr(record, "extra_fields", None) or {})


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    Always carries timestamp, level, service, message and logger; adds
    correlation_id / deletion_run_id when bound, the structured extras,
    the formatted exception, and the source location for ERROR and above.
    """

    def __init__(self, service_name: str = DEFAULT_SERVICE_NAME):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "message": record.getMessage(),
            "logger": record.name,
        }
        for key, ctx in (
            ("correlation_id", correlation_id_ctx),
            ("deletion_run_id", deletion_run_id_ctx),
        ):
            value = ctx.get()
            if value:
                payload[key] = value
        payload.update(_extra_fields(record))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.levelno >= logging.ERROR:
            payload["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """``<time> - <service> - <LEVEL> - [<correlation id>] - <message> k=v ...``"""

    def __init__(self, service_name: str = DEFAULT_SERVICE_NAME):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
        line = " - ".join(
            (
                stamp,
                self.service_name,
                record.levelname,
                f"[{correlation_id_ctx.get() or '-'}]",
                record.getMessage(),
            )
        )

        extras = _extra_fields(record)
        run_id = deletion_run_id_ctx.get()
        if run_id:
            extras["deletion_run_id"] = run_id
        if extras:
            line += " " + " ".join(f"{key}={value}" for key, value in extras.items())

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    log_format: str = "json",
    log_level: str = "INFO",
    service_name: str = DEFAULT_SERVICE_NAME,
) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        log_format: 'json' for structured output, anything else for text
        log_level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        service_name: Value of the ``service`` field
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    formatter_cls = JsonFormatter if log_format.lower() == "json" else TextFormatter
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter_cls(service_name=service_name))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class StructuredLogger:
    """Thin wrapper so call sites can pass structured fields as kwargs.

    ``logger.info("Cascade table processed", table="clients", deleted=3)``
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def _log(
        self, level: int, msg: str, fields: dict[str, Any], exc_info: bool = False
    ) -> None:
        self._logger.log(
            level,
            msg,
            exc_info=exc_info,
            extra={"extra_fields": fields} if fields else None,
            stacklevel=3,
        )

    def debug(self, msg: str, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, fields)

    def info(self, msg: str, **fields: Any) -> None:
        self._log(logging.INFO, msg, fields)

    def warning(self, msg: str, **fields: Any) -> None:
        self._log(logging.WARNING, msg, fields)

    def error(self, msg: str, **fields: Any) -> None:
        self._log(logging.ERROR, msg, fields)

    def exception(self, msg: str, **fields: Any) -> None:
        """ERROR with the traceback of the exception being handled."""
        self._log(logging.ERROR, msg, fields, exc_info=True)


def get_logger(name: str) -> StructuredLogger:
    """StructuredLogger for ``name`` (normally ``__name__``)."""
    return StructuredLogger(name)
