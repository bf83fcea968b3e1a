"""Thin JSON service layer over the authenticated client.

Wraps the verbs callers use day to day. Unlike ``RequestPipeline.send``,
these raise ``OtherHttpError`` for non-2xx responses and decode the backend
envelope.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from ..errors.internal import ParsingError
from ..models import ResponseObject
from .pipeline import Request, Response

if TYPE_CHECKING:
    from ..client import AuthenticatedClient


class BaseApiService:
    """JSON verbs returning decoded ``ResponseObject`` envelopes."""

    def __init__(self, client: AuthenticatedClient) -> None:
        self.client = client

    async def get(self, path: str, *, params: dict[str, Any] | None = None) -> ResponseObject:
        return await self._call(Request("GET", path, params=params))

    async def post(
        self, path: str, data: Any = None, *, params: dict[str, Any] | None = None
    ) -> ResponseObject:
        return await self._call(Request("POST", path, params=params, json_body=data))

    async def put(
        self, path: str, data: Any = None, *, params: dict[str, Any] | None = None
    ) -> ResponseObject:
        return await self._call(Request("PUT", path, params=params, json_body=data))

    async def patch(
        self, path: str, data: Any = None, *, params: dict[str, Any] | None = None
    ) -> ResponseObject:
        return await self._call(Request("PATCH", path, params=params, json_body=data))

    async def delete(self, path: str, *, params: dict[str, Any] | None = None) -> ResponseObject:
        return await self._call(Request("DELETE", path, params=params))

    async def _call(self, request: Request) -> ResponseObject:
        response = await self.client.send(request)
        response.raise_for_status()
        return self._decode(response)

    @staticmethod
    def _decode(response: Response) -> ResponseObject:
        """Decode the backend envelope.

        A 2xx response with an empty body decodes to an empty envelope.

        Raises:
            ParsingError: If the body is not JSON or not an envelope.
        """
        payload = response.json()
        if payload is None:
            return ResponseObject()
        try:
            return ResponseObject.model_validate(payload)
        except ValidationError as e:
            raise ParsingError(
                "Response is not a backend envelope",
                data={"status": response.status, "url": response.url},
            ) from e
