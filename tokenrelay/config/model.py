from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from ..constants import (
    AUTH_FAILURE_STATUSES,
    DEFAULT_API_PATH,
    DEFAULT_AUTH_SCHEME,
    DEFAULT_BASE_API_URL,
    DEFAULT_REFRESH_PATH,
    DEV_PORT,
    REFRESH_COOKIE_NAME,
    RENEWAL_TIMEOUT_SECONDS,
    REQUEST_TIMEOUT_SECONDS,
)

Persistence = Literal["session", "durable"]


def _normalize_path(value: str) -> str:
    """Ensure a single leading slash and no trailing slash ("" stays "")."""
    stripped = value.strip().strip("/")
    return f"/{stripped}" if stripped else ""


class ApiConfig(BaseModel):
    """Settings for one authenticated API client.

    Attributes:
        base_api_url: Backend origin used outside development mode.
        mode: ``development`` targets ``localhost:<dev_port>``.
        api_path: Path prefix prepended to every request path.
        dev_port: Local backend port in development mode.
        refresh_path: Renewal endpoint, relative to the API base URL.
        refresh_cookie: Cookie name carrying the refresh credential.
        refresh_header: Optional header that also carries the refresh credential.
        auth_scheme: Scheme prefix of the Authorization header.
        auth_failure_statuses: Statuses treated as authorization failure.
        request_timeout: Total timeout for ordinary requests (seconds).
        renewal_timeout: Total timeout for the renewal call (seconds).
        credential_file: JSON file backing durable credentials.
        access_persistence: Lifetime of the access credential.
        refresh_persistence: Lifetime of the refresh credential.
        default_headers: Headers sent with every request.
    """

    base_api_url: str = DEFAULT_BASE_API_URL
    mode: Literal["development", "production"] = "development"
    api_path: str = DEFAULT_API_PATH
    dev_port: int = Field(default=DEV_PORT, ge=1, le=65535)
    refresh_path: str = DEFAULT_REFRESH_PATH
    refresh_cookie: str = Field(default=REFRESH_COOKIE_NAME, min_length=1)
    refresh_header: str | None = None
    auth_scheme: str = Field(default=DEFAULT_AUTH_SCHEME, min_length=1)
    auth_failure_statuses: list[int] = Field(
        default_factory=lambda: list(AUTH_FAILURE_STATUSES)
    )
    request_timeout: float = Field(default=REQUEST_TIMEOUT_SECONDS, gt=0)
    renewal_timeout: float = Field(default=RENEWAL_TIMEOUT_SECONDS, gt=0)
    credential_file: str | None = None
    access_persistence: Persistence = "session"
    refresh_persistence: Persistence = "durable"
    default_headers: dict[str, str] = Field(
        default_factory=lambda: {"Content-Type": "application/json"}
    )

    @field_validator("api_path", "refresh_path", mode="before")
    @classmethod
    def validate_paths(cls, v: Any) -> str:
        if not isinstance(v, str):
            raise ValueError("path must be a string")
        return _normalize_path(v)

    @field_validator("base_api_url", mode="before")
    @classmethod
    def validate_base_url(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("base_api_url must be a non-empty string")
        url = v.strip().rstrip("/")
        if not url.startswith(("http://", "https://")):
            raise ValueError("base_api_url must start with http:// or https://")
        return url

    @field_validator("auth_failure_statuses")
    @classmethod
    def validate_statuses(cls, v: list[int]) -> list[int]:
        if not v:
            raise ValueError("auth_failure_statuses must not be empty")
        bad = [s for s in v if not 400 <= s <= 599]
        if bad:
            raise ValueError(f"auth_failure_statuses must be 4xx/5xx, got {bad}")
        return sorted(set(v))

    @model_validator(mode="after")
    def validate_persistence(self) -> ApiConfig:
        """Durable persistence needs somewhere to persist to."""
        wants_durable = "durable" in (self.access_persistence, self.refresh_persistence)
        if wants_durable and self.credential_file is not None and not self.credential_file.strip():
            raise ValueError("credential_file must not be blank")
        return self

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ApiConfig:
        """Create ApiConfig from a dictionary.

        Args:
            data: Dictionary containing configuration data.

        Returns:
            ApiConfig instance.
        """
        return cls.model_validate(dict(data))

    def to_dict(self) -> dict[str, Any]:
        """Convert ApiConfig to a dictionary (``None`` fields omitted)."""
        return self.model_dump(exclude_none=True)


def create_base_url(config: ApiConfig) -> str:
    """Return the API base URL for ``config``.

    Development mode always targets the local backend on ``dev_port``.
    """
    if config.mode == "development":
        return f"http://localhost:{config.dev_port}{config.api_path}"
    return f"{config.base_api_url}{config.api_path}"
