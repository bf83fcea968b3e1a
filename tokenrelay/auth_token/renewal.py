"""Renewal HTTP call: trade the refresh credential for a new access credential."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import aiohttp
from pydantic import ValidationError

from ..constants import REFRESH_COOKIE_NAME, RENEWAL_TIMEOUT_SECONDS
from ..errors.internal import RenewalRejected, RenewalUnreachable
from ..models import RenewalEnvelope
from ..utils import join_url, mask_token


@dataclass
class RenewalResult:
    """Result of a successful renewal.

    Attributes:
        access_token: The new access credential.
        refresh_token: A rotated refresh credential, if the backend issued one.
    """

    access_token: str
    refresh_token: str | None = None


class RenewalExecutor:
    """Client for the backend's refresh endpoint.

    Performs exactly one POST per ``renew`` call and never retries; the
    coordinator decides what a failure means for waiting requests.
    """

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        base_url: str,
        *,
        refresh_path: str = "/auth/refresh-token",
        refresh_cookie: str = REFRESH_COOKIE_NAME,
        refresh_header: str | None = None,
        timeout: float = RENEWAL_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the renewal executor.

        Args:
            http_session: HTTP session for making requests.
            base_url: API base URL the refresh path is resolved against.
            refresh_path: Path of the renewal endpoint.
            refresh_cookie: Cookie name carrying the refresh credential.
            refresh_header: Optional header name also carrying it.
            timeout: Total timeout of the renewal call in seconds.
        """
        self.session = http_session
        self.url = join_url(base_url, refresh_path)
        self.refresh_cookie = refresh_cookie
        self.refresh_header = refresh_header
        self.timeout = timeout

    def _headers(self, refresh_token: str) -> dict[str, str]:
        headers = {"Cookie": f"{self.refresh_cookie}={refresh_token}"}
        if self.refresh_header:
            headers[self.refresh_header] = refresh_token
        return headers

    async def renew(self, refresh_token: str) -> RenewalResult:
        """Obtain a new access credential.

        Args:
            refresh_token: The current refresh credential.

        Returns:
            RenewalResult with the new access credential.

        Raises:
            RenewalRejected: Non-2xx status or a payload without an access credential.
            RenewalUnreachable: The call could not be completed.
        """
        logging.debug(f"🔄 Renewing access credential refresh={mask_token(refresh_token)}")
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with self.session.post(
                self.url, headers=self._headers(refresh_token), timeout=timeout
            ) as resp:
                if not 200 <= resp.status < 300:
                    raise RenewalRejected(
                        f"HTTP {resp.status} during credential renewal",
                        data={"status": resp.status},
                    )
                try:
                    payload = await resp.json(content_type=None)
                except ValueError as e:
                    raise RenewalRejected(
                        "Renewal response is not valid JSON",
                        data={"status": resp.status},
                    ) from e
        except TimeoutError as e:
            raise RenewalUnreachable("Credential renewal timeout") from e
        except (aiohttp.ClientError, OSError) as e:
            raise RenewalUnreachable(
                f"Network error during credential renewal: {type(e).__name__}: {e}"
            ) from e
        return self._parse(payload)

    def _parse(self, payload: object) -> RenewalResult:
        try:
            envelope = RenewalEnvelope.model_validate(payload)
        except ValidationError as e:
            raise RenewalRejected(
                "Renewal response missing access token",
                data={"errors": e.error_count()},
            ) from e
        if not envelope.success:
            raise RenewalRejected(
                envelope.message or "Backend reported unsuccessful renewal"
            )
        tokens = envelope.content.tokens
        logging.info(f"🔑 Access credential renewed access={mask_token(tokens.access_token)}")
        return RenewalResult(tokens.access_token, tokens.refresh_token or None)
