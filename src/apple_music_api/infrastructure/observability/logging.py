"""Structured logging configuration with JSON formatting and request IDs."""

import contextvars
import logging
import sys
import traceback
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from pythonjsonlogger import jsonlogger

# Hey future me, one logical request = one request_id, no matter how many retries it takes.
# The pipeline sets this at the start of execute(); every log line (retry warnings, token
# refreshes) picks it up through RequestIdFilter. contextvars keep it per asyncio task, so
# concurrent requests on one client never mix their IDs.
request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "request_id", default=""
)


def get_request_id() -> str:
    """Get the current request ID from context.

    Returns:
        Current request ID or empty string if not set
    """
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set request ID in context.

    Args:
        request_id: Request ID to set. If None, generates a short random ID

    Returns:
        The request ID that was set
    """
    if request_id is None:
        request_id = uuid.uuid4().hex[:12]
    request_id_var.set(request_id)
    return request_id


@contextmanager
def request_scope(request_id: str | None = None) -> Iterator[str]:
    """Bind a request ID for the duration of one logical request.

    Unlike ``set_request_id`` the previous value is restored on exit, so a
    client call never leaks its ID into the caller's context.
    """
    token = request_id_var.set(request_id or uuid.uuid4().hex[:12])
    try:
        yield request_id_var.get()
    finally:
        request_id_var.reset(token)


class RequestIdFilter(logging.Filter):
    """Add request ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


class CompactExceptionFormatter(logging.Formatter):
    """Formatter that renders exception chains compactly, root cause first.

    Example output:
    WARNING │ request_pipeline:210 │ [3f2a9c] Retrying GET v1/catalog/us/songs/1 in 0.4s
    ╰─► httpx.ConnectError: All connection attempts failed
        File "request_pipeline.py", line 180, in _send
          return await client.request(...)
    """

    def format(self, record: logging.LogRecord) -> str:
        request_id = getattr(record, "request_id", "")
        record.request_tag = f"[{request_id}] " if request_id else ""
        return super().format(record)

    def formatException(self, ei: Any) -> str:
        """Format exception chain in a compact, readable way.

        Args:
            ei: Exception info tuple (type, value, traceback)

        Returns:
            Formatted exception string with compact chain representation
        """
        _, exc_value, _ = ei
        if exc_value is None:
            return ""

        exceptions: list[BaseException] = []
        current: BaseException | None = exc_value
        while current is not None and current not in exceptions:
            exceptions.append(current)
            current = current.__cause__ or current.__context__
        exceptions.reverse()

        lines: list[str] = []
        for exc in exceptions:
            lines.append(f"╰─► {type(exc).__module__}.{type(exc).__name__}: {exc}")
            if exc.__traceback__ is None:
                continue
            for frame in traceback.extract_tb(exc.__traceback__):
                # Only our own frames; library internals are noise here.
                if "apple_music_api" not in frame.filename:
                    continue
                lines.append(
                    f'    File "{Path(frame.filename).name}", line {frame.lineno}, in {frame.name}'
                )
                if frame.line:
                    lines.append(f"      {frame.line.strip()}")

        return "\n".join(lines)


class CustomJsonFormatter(jsonlogger.JsonFormatter):  # type: ignore[misc]
    """JSON formatter with level, logger and request ID fields."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["line"] = record.lineno

        request_id = getattr(record, "request_id", "")
        if request_id:
            log_record["request_id"] = request_id

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)


def configure_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    app_name: str = "apple-music-api",
) -> None:
    """Configure root logging for an application embedding the client.

    The library itself only creates module loggers; call this once from the
    application if you want its output formatted.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format for logs (recommended for production)
        app_name: Application name to include in the startup log line
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(RequestIdFilter())

    if json_format:
        formatter: logging.Formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = CompactExceptionFormatter(
            fmt="%(asctime)s │ %(levelname)-7s │ %(name)s:%(lineno)d │ %(request_tag)s%(message)s",
            datefmt="%H:%M:%S",
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # httpx logs every request at INFO; the pipeline logs its own at DEBUG.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={
            "app_name": app_name,
            "log_level": log_level,
            "json_format": json_format,
        },
    )
