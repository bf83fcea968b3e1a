"""Centralized internal error hierarchy.

These exceptions give the request pipeline and its callers semantic
categories to branch on. Raw aiohttp / JSON errors never leave the transport
or renewal boundaries; they are wrapped into one of the classes below.

Classes:
  InternalError        – Base for all internal errors.
  TransportFailure     – Network/transport error on an original or replayed request.
  AuthenticationExpired – Renewal failed; credentials were cleared, user must log in again.
  RenewalError         – Base for renewal call failures.
  RenewalRejected      – Backend refused the refresh credential (or answered without one).
  RenewalUnreachable   – The renewal call could not be completed.
  OtherHttpError       – Non-authentication failure status surfaced by the service layer.
  ParsingError         – Response body could not be decoded.
  ConfigError          – Configuration file or values are invalid.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..api.pipeline import Response


class InternalError(Exception):
    """Base class for all internal errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class TransportFailure(InternalError):
    """Exception raised when a request cannot be completed over the transport.

    Covers connection errors, timeouts and resets on either the original
    dispatch or the replay after a renewal. Never retried implicitly.
    """


class AuthenticationExpired(InternalError):
    """Exception raised when credential renewal failed.

    The credential store has been cleared by the time this is raised; the
    caller must re-authenticate. The underlying ``RenewalError`` (if any) is
    available as ``__cause__``.
    """


class RenewalError(InternalError):
    """Base class for failures of the renewal call itself."""


class RenewalRejected(RenewalError):
    """Exception raised when the backend rejects the refresh credential.

    Also used when the backend answers 2xx without a usable access credential.
    """


class RenewalUnreachable(RenewalError):
    """Exception raised when the renewal endpoint cannot be reached."""


class OtherHttpError(InternalError):
    """Exception raised for a non-2xx response outside the renewal flow.

    Attributes:
        status: HTTP status code of the response.
        response: The response that triggered the error.
    """

    def __init__(self, response: Response, message: str | None = None) -> None:
        self.status = response.status
        self.response = response
        super().__init__(
            message or f"HTTP {response.status}",
            data={"status": response.status},
        )


class ParsingError(InternalError):
    """Exception raised when a response body cannot be decoded."""


class ConfigError(InternalError):
    """Exception raised for unreadable or invalid configuration."""


__all__ = [
    "InternalError",
    "TransportFailure",
    "AuthenticationExpired",
    "RenewalError",
    "RenewalRejected",
    "RenewalUnreachable",
    "OtherHttpError",
    "ParsingError",
    "ConfigError",
]
