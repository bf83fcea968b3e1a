from __future__ import annotations

import logging

from ..logging_config import log_structured_error
from .internal import (
    AuthenticationExpired,
    ConfigError,
    InternalError,
    OtherHttpError,
    ParsingError,
    RenewalError,
    TransportFailure,
)


def error_category(error: BaseException) -> str:
    """Map an exception to the category used for structured error logging.

    Args:
        error: The exception to categorise.

    Returns:
        One of ``network``, ``auth``, ``http``, ``parsing``, ``config``,
        ``internal`` or ``unknown``.
    """
    if isinstance(error, TransportFailure | OSError | ConnectionError):
        return "network"
    if isinstance(error, AuthenticationExpired | RenewalError):
        return "auth"
    if isinstance(error, OtherHttpError):
        return "http"
    if isinstance(error, ParsingError):
        return "parsing"
    if isinstance(error, ConfigError):
        return "config"
    if isinstance(error, InternalError):
        return "internal"
    return "unknown"


def log_error(
    message: str,
    error: BaseException,
    context: dict | None = None,
    level: int = logging.ERROR,
) -> None:
    """Logs an error message with the associated exception details.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
        level: Logging level (default: ERROR).
    """
    merged: dict = dict(getattr(error, "data", None) or {})
    if context:
        merged.update(context)
    log_structured_error(
        error_type=error_category(error),
        message=f"{message}: {str(error)}",
        exception=error,
        context=merged or None,
        level=level,
    )
