"""Backend response envelope models.

Every backend response is wrapped as
``{"success": bool, "message": str, "content": ..., "pagination": {...}}``.
The renewal endpoint puts the new credentials under ``content.tokens``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Pagination(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    page: int = 1
    total_pages: int = Field(default=1, alias="totalPages")
    total: int | None = None
    limit: int | None = None


class ResponseObject(BaseModel):
    """Generic backend envelope.

    Attributes:
        success: Backend-reported success flag.
        message: Optional human readable message.
        content: Endpoint specific payload.
        pagination: Present on list endpoints.
    """

    model_config = ConfigDict(extra="ignore")

    success: bool = True
    message: str | None = None
    content: Any = None
    pagination: Pagination | None = None


class RenewedTokens(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    access_token: str = Field(alias="ACCESS_TOKEN", min_length=1)
    refresh_token: str | None = Field(default=None, alias="REFRESH_TOKEN")


class RenewalContent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tokens: RenewedTokens


class RenewalEnvelope(ResponseObject):
    """Envelope returned by the renewal endpoint."""

    content: RenewalContent
