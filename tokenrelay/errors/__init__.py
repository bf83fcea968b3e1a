"""Error hierarchy and error logging helpers."""

from .handling import log_error
from .internal import (
    AuthenticationExpired,
    ConfigError,
    InternalError,
    OtherHttpError,
    ParsingError,
    RenewalError,
    RenewalRejected,
    RenewalUnreachable,
    TransportFailure,
)

__all__ = [
    "AuthenticationExpired",
    "ConfigError",
    "InternalError",
    "OtherHttpError",
    "ParsingError",
    "RenewalError",
    "RenewalRejected",
    "RenewalUnreachable",
    "TransportFailure",
    "log_error",
]
