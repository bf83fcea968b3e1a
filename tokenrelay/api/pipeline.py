"""Authenticated request pipeline.

Every outgoing request passes through ``RequestPipeline.send``: the current
access credential is attached, the request is dispatched, and a single
authorization failure is recovered by renewing the credential (through the
single-flight coordinator) and replaying the same request once.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..auth_token.coordinator import SingleFlightCoordinator
from ..auth_token.store import CredentialKind, CredentialStore
from ..constants import AUTH_FAILURE_STATUSES, DEFAULT_AUTH_SCHEME
from ..errors.internal import OtherHttpError, ParsingError

AUTHORIZATION = "Authorization"


@dataclass
class Request:
    """A logical request.

    Attributes:
        method: HTTP method.
        path: Path relative to the API base URL (or an absolute URL).
        headers: Request headers; the pipeline owns ``Authorization``.
        params: Query parameters.
        json_body: JSON body, mutually exclusive with ``data``.
        data: Raw body.
        retried: Set once the request has been replayed after a renewal.
    """

    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, Any] | None = None
    json_body: Any = None
    data: bytes | str | None = None
    retried: bool = False


@dataclass
class Response:
    """A fully read response.

    ``headers`` is case-insensitive and keeps repeated fields when it comes
    from the aiohttp transport (use ``getall``).
    """

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    url: str | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding, errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ParsingError: If the body is not valid JSON.
        """
        if not self.body:
            return None
        try:
            return json.loads(self.body)
        except ValueError as e:
            raise ParsingError(
                f"Response body is not valid JSON (HTTP {self.status})",
                data={"status": self.status, "url": self.url},
            ) from e

    def raise_for_status(self) -> None:
        if not self.ok:
            raise OtherHttpError(self)


class Transport(Protocol):
    async def dispatch(self, request: Request) -> Response: ...


class RequestPipeline:
    """Attaches credentials, dispatches, and recovers one authorization failure."""

    def __init__(
        self,
        transport: Transport,
        store: CredentialStore,
        coordinator: SingleFlightCoordinator,
        *,
        auth_scheme: str = DEFAULT_AUTH_SCHEME,
        auth_failure_statuses: Iterable[int] = AUTH_FAILURE_STATUSES,
    ) -> None:
        self.transport = transport
        self.store = store
        self.coordinator = coordinator
        self.auth_scheme = auth_scheme
        self.auth_failure_statuses = frozenset(auth_failure_statuses)

    def is_auth_failure(self, response: Response) -> bool:
        return response.status in self.auth_failure_statuses

    def _attach(self, request: Request, access_token: str | None) -> None:
        if access_token:
            request.headers[AUTHORIZATION] = f"{self.auth_scheme} {access_token}"

    async def send(self, request: Request) -> Response:
        """Send ``request`` and return its response.

        Args:
            request: The request to send. Its ``retried`` flag and
                ``Authorization`` header are updated in place.

        Returns:
            The response of the original dispatch, or of the single replay
            after a successful renewal. Non-2xx statuses are returned as-is.

        Raises:
            AuthenticationExpired: The credential renewal failed.
            TransportFailure: The request could not be completed.
        """
        sent_with = self.store.get(CredentialKind.ACCESS)
        self._attach(request, sent_with)
        response = await self.transport.dispatch(request)

        if request.retried or not self.is_auth_failure(response):
            return response

        logging.debug(
            f"🔒 Authorization failure status={response.status} {request.method} {request.path}"
        )
        request.retried = True
        access_token = await self.coordinator.obtain_fresh_credential(stale=sent_with)
        self._attach(request, access_token)
        logging.debug(f"🔁 Replaying {request.method} {request.path} with renewed credential")
        return await self.transport.dispatch(request)
