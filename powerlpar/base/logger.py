"""
Structured logging for powerlpar.

Records are single-line JSON carrying lifecycle context: the correlation ID
of the operation, the operation step, the wait being run and the instance
handle.  One create or resize can then be followed through every stop,
update, start and wait in a log aggregator by filtering on ``request_id``.

Operations bind their context once::

    log = lpar_logger.bind("update", handle=handle)
    log.info("Stopping instance", operation="stop")
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Optional

from .models import ResourceHandle

_CONTEXT_KEYS = ("request_id", "operation", "wait", "handle", "cloud_instance_id", "instance_id")


def new_request_id() -> str:
    """Return a short correlation ID for one lifecycle operation."""
    return uuid.uuid4().hex[:12]


class StructuredFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _CONTEXT_KEYS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val
        if record.exc_info and record.exc_info[1]:
            exc = record.exc_info[1]
            log_entry["exception"] = str(exc)
            log_entry["exception_type"] = type(exc).__name__
            # WaitError and InstanceApiError carry these
            for attr in ("state", "status_code"):
                val = getattr(exc, attr, None)
                if val is not None:
                    log_entry[attr] = str(val)
        return json.dumps(log_entry)


def _context(
    handle: Optional[ResourceHandle],
    cloud_instance_id: Optional[str],
    instance_id: Optional[str],
) -> dict[str, Optional[str]]:
    if handle is not None:
        cloud_instance_id = cloud_instance_id or handle.cloud_instance_id
        instance_id = instance_id or handle.instance_id
    return {
        "handle": str(handle) if handle is not None else None,
        "cloud_instance_id": cloud_instance_id,
        "instance_id": instance_id,
    }


class LparLogger:
    """Convenience wrapper around :mod:`logging` for lifecycle operations."""

    def __init__(self, name: str = "powerlpar") -> None:
        self.logger = logging.getLogger(name)
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)

    def log_operation(
        self,
        level: int,
        message: str,
        *,
        operation: str | None = None,
        wait: str | None = None,
        handle: ResourceHandle | None = None,
        cloud_instance_id: str | None = None,
        instance_id: str | None = None,
        request_id: str | None = None,
        exc_info: bool = False,
    ) -> None:
        """Emit a structured log record with lifecycle context.

        Args:
            level: Logging level (e.g. logging.INFO).
            message: Human-readable message.
            operation: Lifecycle step (e.g. 'create', 'stop', 'modify').
            wait: Name of the wait in progress (e.g. 'available').
            handle: Instance handle; fills both IDs when they are omitted.
            cloud_instance_id: Power VS workspace (cloud instance) ID.
            instance_id: Instance (LPAR) ID.
            request_id: Correlation ID; auto-generated if omitted.
            exc_info: Whether to include exception info.
        """
        extra = {
            "operation": operation,
            "wait": wait,
            "request_id": request_id or new_request_id(),
            **_context(handle, cloud_instance_id, instance_id),
        }
        self.logger.log(level, message, extra=extra, exc_info=exc_info)

    def bind(
        self,
        operation: str | None = None,
        *,
        handle: ResourceHandle | None = None,
        cloud_instance_id: str | None = None,
        request_id: str | None = None,
    ) -> "OperationLogger":
        """Fix the context shared by every record of one operation.

        A request ID is generated here when none is given, so all records of
        the operation correlate.
        """
        return OperationLogger(
            self,
            operation=operation,
            handle=handle,
            cloud_instance_id=cloud_instance_id,
            request_id=request_id or new_request_id(),
        )

    def info(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.ERROR, message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.DEBUG, message, **kwargs)


class OperationLogger:
    """An :class:`LparLogger` with lifecycle context already applied.

    Keyword arguments passed to a logging call override the bound values for
    that record only.
    """

    def __init__(self, parent: LparLogger, **context: Any) -> None:
        self.parent = parent
        self.context = {k: v for k, v in context.items() if v is not None}

    @property
    def request_id(self) -> str:
        return self.context["request_id"]

    def bind(self, **context: Any) -> "OperationLogger":
        """Return a logger with extra context layered on this one."""
        return OperationLogger(self.parent, **{**self.context, **context})

    def log(self, level: int, message: str, **kwargs: Any) -> None:
        self.parent.log_operation(level, message, **{**self.context, **kwargs})

    def info(self, message: str, **kwargs: Any) -> None:
        self.log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log(logging.ERROR, message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self.log(logging.DEBUG, message, **kwargs)


# Module-level singleton
lpar_logger = LparLogger()
