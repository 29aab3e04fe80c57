"""
Logging configuration for module access.

- JSON lines for production, colored console output for development
- A per-request log context (request id, tenant, user) stored in a ContextVar
  and stamped on every record emitted inside it
- Decision fields passed through `extra=` (permission, reason) grouped
  under an "access" key in JSON output

Usage:
    from module_access.utils.logging import setup_logging, request_context

    setup_logging(level="INFO", json_format=config.log_json)

    with request_context(tenant_id="acme", user_id="user-123") as request_id:
        service.authorize(ctx, "hrm.employees.employee-directory.view")
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any

from module_access.config import AccessConfig

PACKAGE_LOGGER = "module_access"

# Fields engine/service code passes via extra= that belong to an access decision
ACCESS_FIELDS = ("permission", "reason", "tenant_id", "user_id")

_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message", "asctime", "taskName", "request_id", "log_tenant_id", "log_user_id",
}


@dataclass(frozen=True)
class LogContext:
    request_id: str | None = None
    tenant_id: str | None = None
    user_id: str | None = None


_log_ctx: ContextVar[LogContext] = ContextVar("module_access_log_context", default=LogContext())


def get_log_context() -> LogContext:
    return _log_ctx.get()


def get_request_id() -> str | None:
    """Get the current request ID, if inside a request context."""
    return _log_ctx.get().request_id


class RequestContext:
    """
    Context manager binding a request id (and optionally tenant/user) to logs.

    Nested contexts inherit fields they do not override. A request id is
    generated when none is given.
    """

    def __init__(
        self,
        request_id: str | None = None,
        tenant_id: str | None = None,
        user_id: str | None = None,
    ):
        self._request_id = request_id
        self._tenant_id = tenant_id
        self._user_id = user_id
        self._token: Token | None = None

    def __enter__(self) -> str:
        current = _log_ctx.get()
        bound = replace(
            current,
            request_id=self._request_id or current.request_id or uuid.uuid4().hex[:8],
            tenant_id=self._tenant_id or current.tenant_id,
            user_id=self._user_id or current.user_id,
        )
        self._token = _log_ctx.set(bound)
        return bound.request_id

    def __exit__(self, *exc) -> None:
        _log_ctx.reset(self._token)


def request_context(
    request_id: str | None = None,
    tenant_id: str | None = None,
    user_id: str | None = None,
) -> RequestContext:
    """
    Bind log context for the duration of a request.

    Usage:
        with request_context(tenant_id="acme") as request_id:
            logger.info("Processing")  # record carries request id and tenant
    """
    return RequestContext(request_id, tenant_id, user_id)


class LogContextFilter(logging.Filter):
    """Stamps the active log context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = _log_ctx.get()
        record.request_id = ctx.request_id or "-"
        record.log_tenant_id = ctx.tenant_id
        record.log_user_id = ctx.user_id
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        ctx = _log_ctx.get()
        if ctx.request_id:
            data["request_id"] = ctx.request_id

        access = {k: v for k, v in ((k, getattr(record, k, None)) for k in ACCESS_FIELDS) if v is not None}
        if ctx.tenant_id:
            access.setdefault("tenant_id", ctx.tenant_id)
        if ctx.user_id:
            access.setdefault("user_id", ctx.user_id)
        if access:
            data["access"] = access

        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS and key not in ACCESS_FIELDS:
                data[key] = value

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)

        return json.dumps(data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored, single-line output for development."""

    COLORS = {
        "DEBUG": "\033[36m",    # Cyan
        "INFO": "\033[32m",     # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",    # Red
        "CRITICAL": "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:8}"
        if self.use_colors:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"

        ctx = _log_ctx.get()
        tags = " ".join(
            part for part in (
                ctx.request_id,
                f"tenant={ctx.tenant_id}" if ctx.tenant_id else None,
                f"user={ctx.user_id}" if ctx.user_id else None,
            ) if part
        )
        prefix = f"[{tags}] " if tags else ""

        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%H:%M:%S")
        line = f"{timestamp} {level} {prefix}{record.name}: {record.getMessage()}"

        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    module_levels: dict[str, str] | None = None,
) -> logging.Handler:
    """
    Configure root logging for a host process.

    Args:
        level: Default log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: JSON lines instead of colored console output
        module_levels: Per-logger overrides,
            e.g. {"module_access.engine": "WARNING"} to silence denials

    Returns:
        The installed handler
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level '{level}'")

    root = logging.getLogger()
    root.setLevel(numeric)
    for existing in root.handlers[:]:
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric)
    handler.addFilter(LogContextFilter())
    handler.setFormatter(JSONFormatter() if json_format else ConsoleFormatter(use_colors=sys.stdout.isatty()))
    root.addHandler(handler)

    for name, name_level in (module_levels or {}).items():
        logging.getLogger(name).setLevel(name_level.upper())

    return handler


def setup_logging_from_config(config: AccessConfig) -> logging.Handler:
    """Configure logging from AccessConfig (JSON output forced in production)."""
    return setup_logging(
        level=config.log_level,
        json_format=config.log_json or config.is_production,
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the package namespace."""
    if name != PACKAGE_LOGGER and not name.startswith(f"{PACKAGE_LOGGER}."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
