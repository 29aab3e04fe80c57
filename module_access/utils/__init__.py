# Utils - Shared utilities

from module_access.utils.logging import (
    ConsoleFormatter,
    JSONFormatter,
    LogContextFilter,
    get_log_context,
    get_logger,
    get_request_id,
    request_context,
    setup_logging,
    setup_logging_from_config,
)

__all__ = [
    "ConsoleFormatter",
    "JSONFormatter",
    "LogContextFilter",
    "get_log_context",
    "get_logger",
    "get_request_id",
    "request_context",
    "setup_logging",
    "setup_logging_from_config",
]
