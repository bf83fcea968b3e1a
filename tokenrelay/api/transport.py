"""aiohttp transport for the request pipeline."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from ..constants import REQUEST_TIMEOUT_SECONDS
from ..errors.internal import TransportFailure
from ..utils import join_url
from .pipeline import Request, Response


class AiohttpTransport:
    """Dispatches ``Request`` objects over an ``aiohttp.ClientSession``.

    Status codes are never interpreted here; only failures to complete the
    exchange raise.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str,
        *,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        default_headers: dict[str, str] | None = None,
    ) -> None:
        if not session:
            raise ValueError("aiohttp session required")
        self._session = session
        self.base_url = base_url
        self.timeout = timeout
        self.default_headers = dict(default_headers or {})

    def _request_kwargs(self, request: Request) -> dict[str, Any]:
        headers = {**self.default_headers, **request.headers}
        kwargs: dict[str, Any] = {
            "headers": headers,
            "timeout": aiohttp.ClientTimeout(total=self.timeout),
        }
        if request.params:
            kwargs["params"] = request.params
        if request.json_body is not None:
            kwargs["json"] = request.json_body
        elif request.data is not None:
            kwargs["data"] = request.data
        return kwargs

    async def dispatch(self, request: Request) -> Response:
        """Perform one HTTP exchange.

        Raises:
            TransportFailure: On connection errors, timeouts or resets.
        """
        url = join_url(self.base_url, request.path)
        try:
            async with self._session.request(
                request.method, url, **self._request_kwargs(request)
            ) as resp:
                body = await resp.read()
                logging.debug(
                    f"API response: status={resp.status} {request.method} {url} bytes={len(body)}"
                )
                return Response(
                    status=resp.status,
                    # CIMultiDict copy; repeated headers such as Set-Cookie survive
                    headers=resp.headers.copy(),
                    body=body,
                    url=url,
                )
        except TimeoutError as e:
            raise TransportFailure(
                f"Request timeout {request.method} {url}", data={"url": url}
            ) from e
        except (aiohttp.ClientError, OSError) as e:
            raise TransportFailure(
                f"Network error {request.method} {url}: {type(e).__name__}: {e}",
                data={"url": url},
            ) from e
